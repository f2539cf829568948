"""
Spatial statistics on shot locations.

Weights, autocorrelation and regression are delegated to the PySAL stack:
  libpysal  -> k-nearest-neighbour weights
  esda      -> global Moran's I with permutation inference
  spreg     -> spatial lag (ML or GM) and OLS baseline
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from esda.moran import Moran
from libpysal.weights import KNN, W
from scipy.spatial import Voronoi
from spreg import GM_Lag, ML_Lag, OLS

from .config import COURT_BOUNDS
from .validate import require_columns, require_min_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoranResult:
    value: str
    k: int
    n: int
    I: float
    expected_I: float
    z_norm: float
    p_norm: float
    p_sim: Optional[float]
    permutations: int

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass(frozen=True)
class LagResult:
    method: str
    y: str
    x: Tuple[str, ...]
    n: int
    k: int
    coefficients: Dict[str, float]
    rho: float
    pseudo_r2: float
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        d = dict(self.__dict__)
        d["x"] = list(self.x)
        d.pop("summary")
        return d


def _jitter_duplicates(coords: np.ndarray, *, scale: float = 0.5, seed: int = 0) -> np.ndarray:
    # stacked shots at the same spot break Voronoi and make KNN ties arbitrary
    coords = np.array(coords, dtype=float, copy=True)
    dup = pd.DataFrame(coords).duplicated(keep="first").to_numpy()
    if dup.any():
        rng = np.random.default_rng(seed)
        coords[dup] += rng.uniform(-scale, scale, size=(int(dup.sum()), 2))
    return coords


def knn_weights(coords, k: int) -> W:
    coords = np.asarray(coords, dtype=float)
    if coords.ndim != 2 or coords.shape[1] != 2:
        raise ValueError(f"knn_weights: expected an (n, 2) coordinate array, got shape {coords.shape}")
    if k < 1 or k >= len(coords):
        raise ValueError(f"knn_weights: k must be in [1, n-1] for n={len(coords)}, got {k}")

    w = KNN.from_array(_jitter_duplicates(coords), k=k)
    w.transform = "r"
    return w


def morans_i(
    df: pd.DataFrame,
    *,
    value: str = "made",
    k: int = 8,
    permutations: int = 999,
    seed: Optional[int] = None,
) -> MoranResult:
    """Global Moran's I of `value` over shot (or cell) locations."""
    require_columns(df, ["x", "y", value], name="moran")
    clean = df.dropna(subset=["x", "y", value])
    require_min_rows(clean, k + 1, name="moran")

    y = clean[value].to_numpy(float)
    if np.allclose(y, y[0]):
        raise ValueError(f"moran: {value} is constant, autocorrelation is undefined")

    w = knn_weights(clean[["x", "y"]].to_numpy(float), k=k)

    if seed is not None:
        np.random.seed(seed)
    mi = Moran(y, w, permutations=permutations)

    out = MoranResult(
        value=value,
        k=k,
        n=int(len(y)),
        I=float(mi.I),
        expected_I=float(mi.EI),
        z_norm=float(mi.z_norm),
        p_norm=float(mi.p_norm),
        p_sim=float(mi.p_sim) if permutations else None,
        permutations=permutations,
    )
    logger.info("Moran's I for %s (k=%d, n=%d): I=%.4f p_sim=%s", value, k, out.n, out.I, out.p_sim)
    return out


def aggregate_cells(df: pd.DataFrame, cell_size: float = 20.0, min_attempts: int = 1) -> pd.DataFrame:
    """Bin shots into square cells and summarise each cell."""
    require_columns(df, ["x", "y", "made", "distance"], name="cells")
    if cell_size <= 0:
        raise ValueError(f"cells: cell_size must be positive, got {cell_size}")

    gx = np.floor(df["x"].to_numpy(float) / cell_size).astype(int)
    gy = np.floor(df["y"].to_numpy(float) / cell_size).astype(int)

    out = (
        df.assign(gx=gx, gy=gy)
        .groupby(["gx", "gy"])
        .agg(attempts=("made", "size"), makes=("made", "sum"), distance=("distance", "mean"))
        .reset_index()
    )
    out = out[out["attempts"] >= min_attempts].copy()
    out["x"] = (out["gx"] + 0.5) * cell_size
    out["y"] = (out["gy"] + 0.5) * cell_size
    out["fg_pct"] = out["makes"] / out["attempts"]
    return out.reset_index(drop=True)


def _design(cells: pd.DataFrame, y: str, x: Sequence[str]) -> Tuple[np.ndarray, np.ndarray]:
    require_columns(cells, [y, *x], name="regression")
    clean = cells.dropna(subset=[y, *x])
    return clean[[y]].to_numpy(float), clean[list(x)].to_numpy(float)


def spatial_lag_regression(
    cells: pd.DataFrame,
    *,
    y: str = "fg_pct",
    x: Sequence[str] = ("distance",),
    k: int = 6,
    method: str = "ml",
) -> LagResult:
    """
    Spatial lag model y = rho*Wy + X*beta + e with KNN weights.

    method="ml" fits by maximum likelihood, method="gm" by spatial two-stage
    least squares. Coefficients are keyed CONSTANT, *x, rho.
    """
    method = method.lower()
    if method not in ("ml", "gm"):
        raise ValueError(f"regression: unknown method {method!r} (expected 'ml' or 'gm')")

    x = tuple(x)
    clean = cells.dropna(subset=["x", "y", y, *x])
    require_min_rows(clean, max(k + 1, len(x) + 3), name="regression")

    yv, xv = _design(clean, y, x)
    w = knn_weights(clean[["x", "y"]].to_numpy(float), k=k)

    if method == "ml":
        model = ML_Lag(yv, xv, w, method="full", name_y=y, name_x=list(x), name_w=f"knn{k}")
    else:
        model = GM_Lag(yv, xv, w=w, w_lags=1, name_y=y, name_x=list(x), name_w=f"knn{k}")

    betas = np.asarray(model.betas, dtype=float).ravel()
    names = ["CONSTANT", *x, "rho"]
    coefficients = {n: float(b) for n, b in zip(names, betas)}

    out = LagResult(
        method=method,
        y=y,
        x=x,
        n=int(len(yv)),
        k=k,
        coefficients=coefficients,
        rho=coefficients["rho"],
        pseudo_r2=float(model.pr2),
        summary=str(getattr(model, "summary", "")),
    )
    logger.info("Spatial lag (%s) %s ~ %s: rho=%.4f pseudo R2=%.3f", method, y, list(x), out.rho, out.pseudo_r2)
    return out


def ols_baseline(cells: pd.DataFrame, *, y: str = "fg_pct", x: Sequence[str] = ("distance",)) -> Dict[str, Any]:
    yv, xv = _design(cells, y, tuple(x))
    require_min_rows(pd.DataFrame(yv), len(x) + 2, name="ols")
    model = OLS(yv, xv, name_y=y, name_x=list(x))
    betas = np.asarray(model.betas, dtype=float).ravel()
    return {
        "coefficients": {n: float(b) for n, b in zip(["CONSTANT", *x], betas)},
        "r2": float(model.r2),
        "n": int(len(yv)),
    }


def voronoi_cells(
    df: pd.DataFrame,
    *,
    bounds: Tuple[float, float, float, float] = COURT_BOUNDS,
) -> List[np.ndarray]:
    """
    One finite Voronoi polygon per shot, in row order.

    Four far-away guard points close every region; plotting clips the cells
    to `bounds` through the axes limits.
    """
    require_columns(df, ["x", "y"], name="voronoi")
    require_min_rows(df, 3, name="voronoi")

    pts = _jitter_duplicates(df[["x", "y"]].to_numpy(float))
    xmin, xmax, ymin, ymax = bounds
    span = 3.0 * max(xmax - xmin, ymax - ymin)
    cx, cy = (xmin + xmax) / 2.0, (ymin + ymax) / 2.0
    guards = np.array([[cx - span, cy], [cx + span, cy], [cx, cy - span], [cx, cy + span]])

    vor = Voronoi(np.vstack([pts, guards]))
    polys: List[np.ndarray] = []
    for i in range(len(pts)):
        region = vor.regions[vor.point_region[i]]
        if not region or -1 in region:
            polys.append(np.empty((0, 2)))
            continue
        polys.append(vor.vertices[region])
    return polys

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from .validate import require_columns

# court landmarks, tenths of feet with the hoop at the origin
RESTRICTED_RADIUS_FT = 4.0
THREE_POINT_RADIUS_FT = 23.75
CORNER_THREE_X = 220.0
CORNER_THREE_Y = 92.5
PAINT_HALF_WIDTH = 80.0
PAINT_TOP_Y = 142.5
HALF_COURT_Y = 422.5


def classify_zones(x, y) -> np.ndarray:
    """Vectorised basic-zone labels for coordinates in tenths of feet."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    dist_ft = np.hypot(x, y) / 10.0

    conditions = [
        y > HALF_COURT_Y,
        dist_ft <= RESTRICTED_RADIUS_FT,
        (np.abs(x) >= CORNER_THREE_X) & (y <= CORNER_THREE_Y) & (x < 0),
        (np.abs(x) >= CORNER_THREE_X) & (y <= CORNER_THREE_Y),
        dist_ft >= THREE_POINT_RADIUS_FT,
        (np.abs(x) <= PAINT_HALF_WIDTH) & (y <= PAINT_TOP_Y),
    ]
    choices = [
        "Backcourt",
        "Restricted Area",
        "Left Corner 3",
        "Right Corner 3",
        "Above the Break 3",
        "In The Paint (Non-RA)",
    ]
    return np.select(conditions, choices, default="Mid-Range")


def classify_zone(x: float, y: float) -> str:
    return str(classify_zones([x], [y])[0])


def _band_index(distance: np.ndarray, bins: Sequence[float]) -> np.ndarray:
    edges = np.asarray(bins, dtype=float)
    if edges.size < 2 or np.any(np.diff(edges) <= 0):
        raise ValueError(f"distance_bins: need at least two increasing edges, got {list(bins)}")
    n_bands = edges.size - 1
    idx = np.searchsorted(edges, distance, side="right") - 1
    return np.clip(idx, 0, n_bands - 1)


def _angle_index(x: np.ndarray, y: np.ndarray, n_angles: int) -> np.ndarray:
    if n_angles < 1:
        raise ValueError(f"n_angles: must be >= 1, got {n_angles}")
    # 0 deg = right baseline, 180 deg = left baseline; behind-the-hoop shots clip to the baseline
    deg = np.degrees(np.arctan2(np.maximum(y, 0.0), x))
    deg = np.clip(deg, 0.0, 180.0)
    width = 180.0 / n_angles
    return np.clip((deg // width).astype(int), 0, n_angles - 1)


def assign_sectors(
    df: pd.DataFrame,
    distance_bins: Sequence[float],
    n_angles: int,
) -> pd.DataFrame:
    require_columns(df, ["x", "y", "distance"], name="sectors")
    out = df.copy()
    x = out["x"].to_numpy(float)
    y = out["y"].to_numpy(float)

    out["angle_idx"] = _angle_index(x, y, n_angles)
    out["band_idx"] = _band_index(out["distance"].to_numpy(float), distance_bins)
    out["sector"] = "a" + out["angle_idx"].astype(str) + "_d" + out["band_idx"].astype(str)
    return out


def sector_summary(
    df: pd.DataFrame,
    distance_bins: Sequence[float],
    n_angles: int,
) -> pd.DataFrame:
    """
    Attempts and FG% for every angle x distance sector, including empty ones.

    Geometry columns (theta1/theta2 in degrees, r_inner/r_outer in feet) are
    enough to draw each sector as a matplotlib Wedge centred on the hoop.
    """
    tagged = assign_sectors(df, distance_bins=distance_bins, n_angles=n_angles)
    edges = [float(b) for b in distance_bins]
    width = 180.0 / n_angles

    grid = pd.MultiIndex.from_product(
        [range(n_angles), range(len(edges) - 1)], names=["angle_idx", "band_idx"]
    )
    agg = (
        tagged.groupby(["angle_idx", "band_idx"])["made"]
        .agg(attempts="size", makes="sum")
        .reindex(grid, fill_value=0)
        .reset_index()
    )
    agg["attempts"] = agg["attempts"].astype(int)
    agg["makes"] = agg["makes"].astype(int)
    agg["fg_pct"] = np.where(agg["attempts"] > 0, agg["makes"] / agg["attempts"].clip(lower=1), np.nan)

    agg["sector"] = "a" + agg["angle_idx"].astype(str) + "_d" + agg["band_idx"].astype(str)
    agg["theta1"] = agg["angle_idx"] * width
    agg["theta2"] = agg["theta1"] + width
    agg["r_inner"] = agg["band_idx"].map(lambda i: edges[i])
    agg["r_outer"] = agg["band_idx"].map(lambda i: edges[i + 1])
    return agg

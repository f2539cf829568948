from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import numpy as np
import pandas as pd

from .schemas import CANONICAL_COLUMNS, COLUMN_ALIASES, REQUIRED_COLUMNS, THREE_POINT_ZONES, ShotData
from .validate import coerce_numeric_series, require_columns, require_nonempty
from .zones import classify_zones

logger = logging.getLogger(__name__)

_MADE_STRINGS = {
    "1": 1, "0": 0,
    "made": 1, "missed": 0,
    "made shot": 1, "missed shot": 0,
    "make": 1, "miss": 0,
    "true": 1, "false": 0,
    "yes": 1, "no": 0,
    "y": 1, "n": 0,
}


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Lower-case headers and rename known aliases to the canonical names."""
    out = df.copy()
    out.columns = [str(c).strip().lower() for c in out.columns]

    rename = {}
    for c in out.columns:
        target = COLUMN_ALIASES.get(c)
        if target and target not in out.columns and target not in rename.values():
            rename[c] = target
    out = out.rename(columns=rename)

    # EVENT_TYPE ("Made Shot"/"Missed Shot") only stands in when no flag exists
    if "made" not in out.columns and "event_type" in out.columns:
        out = out.rename(columns={"event_type": "made"})

    return out


def _coerce_made(s: pd.Series) -> pd.Series:
    if s.dtype == bool:
        return s.astype(int)
    if pd.api.types.is_numeric_dtype(s):
        return pd.to_numeric(s, errors="coerce")
    mapped = s.astype(str).str.strip().str.lower().map(_MADE_STRINGS)
    return pd.to_numeric(mapped, errors="coerce")


def _finalize_shots(df: pd.DataFrame) -> pd.DataFrame:
    """
    Build the processed contract the charts and tests expect:
      player,team,position,period,x,y,distance,made,zone,zone_area,zone_range,shot_type
    """
    require_columns(df, REQUIRED_COLUMNS, name="shots")
    out = df.copy()

    out["x"] = coerce_numeric_series(out["x"], name="shots.x")
    out["y"] = coerce_numeric_series(out["y"], name="shots.y")
    out["made"] = _coerce_made(out["made"])

    if "distance" in out.columns:
        out["distance"] = pd.to_numeric(out["distance"], errors="coerce")
    else:
        out["distance"] = np.nan

    out = out.dropna(subset=["x", "y", "made"]).copy()
    out = out[out["made"].isin([0, 1])].copy()

    derived = np.hypot(out["x"].to_numpy(float), out["y"].to_numpy(float)) / 10.0
    out["distance"] = out["distance"].fillna(pd.Series(derived, index=out.index))

    out["x"] = out["x"].astype(float)
    out["y"] = out["y"].astype(float)
    out["distance"] = out["distance"].astype(float)
    out["made"] = out["made"].astype(int)

    if "zone" not in out.columns:
        out["zone"] = pd.NA
    out["zone"] = out["zone"].astype(object)
    missing_zone = out["zone"].isna()
    if missing_zone.any():
        out.loc[missing_zone, "zone"] = classify_zones(
            out.loc[missing_zone, "x"], out.loc[missing_zone, "y"]
        )

    if "shot_type" not in out.columns:
        out["shot_type"] = pd.NA
    out["shot_type"] = out["shot_type"].astype(object)
    missing_type = out["shot_type"].isna()
    if missing_type.any():
        out.loc[missing_type, "shot_type"] = np.where(
            out.loc[missing_type, "zone"].isin(THREE_POINT_ZONES), "3PT Field Goal", "2PT Field Goal"
        )

    if "period" in out.columns:
        out["period"] = pd.to_numeric(out["period"], errors="coerce").astype("Int64")

    for c in CANONICAL_COLUMNS:
        if c not in out.columns:
            out[c] = pd.NA

    extra = [c for c in out.columns if c not in CANONICAL_COLUMNS]
    return out[list(CANONICAL_COLUMNS) + extra].reset_index(drop=True)


def _build_meta(name: str, source: str, raw: pd.DataFrame, shots: pd.DataFrame) -> Dict[str, Any]:
    return {
        "name": name,
        "source": source,
        "rows_raw": int(len(raw)),
        "rows_kept": int(len(shots)),
        "players": sorted(shots["player"].dropna().astype(str).unique().tolist()),
        "teams": sorted(shots["team"].dropna().astype(str).unique().tolist()),
        "fg_pct": float(shots["made"].mean()),
    }


def process_shots(raw: pd.DataFrame, source: str = "", *, name: str = "shots") -> ShotData:
    """
    Clean a raw shot table into the processed contract.

    - source: where the rows came from (file path, URL, upload name); kept in meta
    - name: dataset name, used as the processed folder name
    """
    df = normalize_columns(raw)
    shots = _finalize_shots(df)
    require_nonempty(shots, name="shots")

    dropped = len(raw) - len(shots)
    if dropped:
        logger.warning("Dropped %d of %d rows with unusable coordinates or make flag", dropped, len(raw))
    logger.info("Processed %d shots for %s", len(shots), name)

    return ShotData(name=name, shots=shots, meta=_build_meta(name, str(source), raw, shots))


def _as_list(v: Union[Any, Iterable[Any], None]) -> Optional[list]:
    if v is None:
        return None
    if isinstance(v, (str, bytes)) or not isinstance(v, Iterable):
        return [v]
    return list(v)


def filter_shots(
    df: pd.DataFrame,
    *,
    players=None,
    teams=None,
    positions=None,
    zones=None,
    periods=None,
    min_distance: Optional[float] = None,
    max_distance: Optional[float] = None,
    made: Optional[int] = None,
) -> pd.DataFrame:
    mask = pd.Series(True, index=df.index)

    for col, wanted in (
        ("player", players),
        ("team", teams),
        ("position", positions),
        ("zone", zones),
        ("period", periods),
    ):
        values = _as_list(wanted)
        if values is not None:
            mask &= df[col].isin(values)

    if min_distance is not None:
        mask &= df["distance"] >= float(min_distance)
    if max_distance is not None:
        mask &= df["distance"] <= float(max_distance)
    if made is not None:
        mask &= df["made"] == int(made)

    return df.loc[mask].copy()


def top_players(df: pd.DataFrame, n: int = 10, min_attempts: int = 1) -> pd.DataFrame:
    out = (
        df.dropna(subset=["player"])
        .groupby("player")["made"]
        .agg(attempts="size", makes="sum")
        .reset_index()
    )
    out = out[out["attempts"] >= min_attempts].copy()
    out["fg_pct"] = out["makes"] / out["attempts"]
    return out.sort_values(["attempts", "player"], ascending=[False, True]).head(n).reset_index(drop=True)


def save_processed(data: ShotData, out_root: Path) -> Path:
    out_dir = Path(out_root) / data.name
    out_dir.mkdir(parents=True, exist_ok=True)

    data.shots.to_csv(out_dir / "shots.csv.gz", index=False, compression="gzip")
    (out_dir / "meta.json").write_text(json.dumps(data.meta, indent=2))

    return out_dir


def load_processed(folder: Union[str, Path]) -> ShotData:
    folder = Path(folder)
    path = folder / "shots.csv.gz"
    if not path.exists():
        raise FileNotFoundError(f"Processed shots not found: {path}")

    shots = pd.read_csv(path)
    shots = _finalize_shots(shots)

    meta_path = folder / "meta.json"
    meta = json.loads(meta_path.read_text(encoding="utf-8")) if meta_path.exists() else {}
    return ShotData(name=folder.name, shots=shots, meta=meta)

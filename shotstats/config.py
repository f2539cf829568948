from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


PROJECT_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = Path(os.getenv("SHOTSTATS_DATA_DIR", str(PROJECT_ROOT / "data"))).expanduser()
PROCESSED_DIR = DATA_DIR / "processed"
RAW_CACHE_DIR = DATA_DIR / "raw"


# half court in tenths of feet: sidelines at +-250, baseline at -47.5, half-court line at 422.5
COURT_BOUNDS = (-250.0, 250.0, -47.5, 422.5)


@dataclass(frozen=True)
class AnalysisConfig:
    # spatial weights / Moran's I
    k: int = 8
    permutations: int = 999
    seed: int = 12345

    # grid aggregation for the lag model (tenths of feet)
    cell_size: float = 20.0
    min_cell_attempts: int = 5

    # distance bands in feet, shared by histograms and sectors
    distance_bins: Tuple[float, ...] = (0.0, 8.0, 16.0, 24.0, 30.0)
    n_angles: int = 5
    min_sector_attempts: int = 10

    # the lag model runs on grid cells, which are far fewer than shots
    lag_k: int = 6
    lag_method: str = "ml"
    x_vars: Tuple[str, ...] = field(default=("distance",))


CFG = AnalysisConfig()

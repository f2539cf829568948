from __future__ import annotations

from collections.abc import Iterable

import pandas as pd


def require_columns(df: pd.DataFrame, cols: Iterable[str], *, name: str) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        have = sorted(map(str, df.columns))
        raise ValueError(f"{name}: missing required columns: {missing} (have {have})")


def require_nonempty(df: pd.DataFrame, *, name: str) -> None:
    if df.empty:
        raise ValueError(
            f"{name}: no usable shots left; every row lacked numeric coordinates or a 0/1 make flag"
        )


def coerce_numeric_series(s: pd.Series, *, name: str) -> pd.Series:
    out = pd.to_numeric(s, errors="coerce")
    if out.isna().all():
        raise ValueError(f"{name}: no value parses as a number (first values: {s.head(3).tolist()})")
    return out


def require_min_rows(df: pd.DataFrame, n: int, *, name: str) -> None:
    if len(df) < n:
        raise ValueError(f"{name}: need at least {n} rows, got {len(df)}")

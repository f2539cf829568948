from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from .validate import require_columns, require_min_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TTestResult:
    value: str
    group: str
    a: Any
    b: Any
    n_a: int
    n_b: int
    mean_a: float
    mean_b: float
    statistic: float
    pvalue: float
    equal_var: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ChiSquareResult:
    row: str
    col: str
    statistic: float
    pvalue: float
    dof: int
    table: pd.DataFrame
    expected: pd.DataFrame

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row": self.row,
            "col": self.col,
            "statistic": self.statistic,
            "pvalue": self.pvalue,
            "dof": self.dof,
            "table": {str(k): {str(c): int(v) for c, v in r.items()} for k, r in self.table.iterrows()},
        }


def fg_summary(df: pd.DataFrame, by: Optional[str] = None) -> pd.DataFrame:
    """Attempts, makes, FG% and mean distance, overall or per group."""
    require_columns(df, ["made", "distance"], name="fg_summary")
    aggs = dict(attempts=("made", "size"), makes=("made", "sum"), mean_distance=("distance", "mean"))

    if by is None:
        out = pd.DataFrame(
            [{
                "attempts": int(len(df)),
                "makes": int(df["made"].sum()),
                "mean_distance": float(df["distance"].mean()) if len(df) else np.nan,
            }]
        )
    else:
        require_columns(df, [by], name="fg_summary")
        out = df.groupby(by, dropna=True).agg(**aggs).reset_index()
        out = out.sort_values(["attempts", by], ascending=[False, True]).reset_index(drop=True)

    out["fg_pct"] = np.where(out["attempts"] > 0, out["makes"] / out["attempts"].clip(lower=1), np.nan)
    return out


def distance_profile(df: pd.DataFrame, bins: Sequence[float]) -> pd.DataFrame:
    """FG% by distance band; the last band is open-ended."""
    edges = list(bins) + [np.inf]
    labels = [f"{edges[i]:g}-{edges[i + 1]:g} ft" for i in range(len(edges) - 2)]
    labels.append(f"{edges[-2]:g}+ ft")

    band = pd.cut(df["distance"], bins=edges, labels=labels, right=False, include_lowest=True)
    out = (
        df.assign(band=band)
        .groupby("band", observed=False)["made"]
        .agg(attempts="size", makes="sum")
        .reset_index()
    )
    out["fg_pct"] = np.where(out["attempts"] > 0, out["makes"] / out["attempts"].clip(lower=1), np.nan)
    return out


def compare_means(
    df: pd.DataFrame,
    value: str,
    group: str,
    a: Any,
    b: Any,
    *,
    equal_var: bool = False,
) -> TTestResult:
    """Two-sample t-test of `value` between rows where `group` == a and == b (Welch by default)."""
    require_columns(df, [value, group], name="t-test")
    xa = pd.to_numeric(df.loc[df[group] == a, value], errors="coerce").dropna()
    xb = pd.to_numeric(df.loc[df[group] == b, value], errors="coerce").dropna()
    require_min_rows(xa.to_frame(), 2, name=f"t-test group {group}={a!r}")
    require_min_rows(xb.to_frame(), 2, name=f"t-test group {group}={b!r}")

    res = stats.ttest_ind(xa.to_numpy(float), xb.to_numpy(float), equal_var=equal_var)
    out = TTestResult(
        value=value,
        group=group,
        a=a,
        b=b,
        n_a=int(len(xa)),
        n_b=int(len(xb)),
        mean_a=float(xa.mean()),
        mean_b=float(xb.mean()),
        statistic=float(res.statistic),
        pvalue=float(res.pvalue),
        equal_var=equal_var,
    )
    logger.info("t-test %s by %s (%r vs %r): t=%.3f p=%.4g", value, group, a, b, out.statistic, out.pvalue)
    return out


def distance_ttest(df: pd.DataFrame) -> TTestResult:
    return compare_means(df, "distance", "made", 1, 0)


def chi_square(df: pd.DataFrame, row: str, col: str = "made") -> ChiSquareResult:
    """Chi-square test of independence on the row x col contingency table."""
    require_columns(df, [row, col], name="chi-square")
    table = pd.crosstab(df[row], df[col])
    if table.shape[0] < 2 or table.shape[1] < 2:
        raise ValueError(f"chi-square: need at least a 2x2 table for {row} x {col}, got {table.shape}")

    statistic, pvalue, dof, expected = stats.chi2_contingency(table.to_numpy())
    out = ChiSquareResult(
        row=row,
        col=col,
        statistic=float(statistic),
        pvalue=float(pvalue),
        dof=int(dof),
        table=table,
        expected=pd.DataFrame(expected, index=table.index, columns=table.columns),
    )
    logger.info("chi-square %s x %s: chi2=%.3f dof=%d p=%.4g", row, col, out.statistic, out.dof, out.pvalue)
    return out


def compare_fg_pct(df: pd.DataFrame, group: str, a: Any, b: Any) -> ChiSquareResult:
    """2x2 chi-square of make rate between two groups (e.g. two players)."""
    sub = df[df[group].isin([a, b])]
    return chi_square(sub, group, "made")

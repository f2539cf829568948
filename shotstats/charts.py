from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.collections import PatchCollection, PolyCollection
from matplotlib.colors import Normalize
from matplotlib.figure import Figure
from matplotlib.patches import Wedge

from .config import COURT_BOUNDS
from .court import draw_court, setup_court_axes
from .schemas import ZONE_ORDER
from .spatial import voronoi_cells
from .stats import fg_summary
from .zones import sector_summary

MADE_COLOR = "#2ca02c"
MISS_COLOR = "#d62728"

PathLike = Union[str, Path]


def _finish(fig: Figure, savefig: Optional[PathLike]) -> Figure:
    fig.tight_layout()
    if savefig:
        fig.savefig(savefig, dpi=150, bbox_inches="tight")
    return fig


def _court_fig(figsize=(8, 7.5)):
    fig, ax = plt.subplots(figsize=figsize)
    draw_court(ax)
    setup_court_axes(ax)
    return fig, ax


def plot_distance_histogram(
    df: pd.DataFrame,
    *,
    bins: Union[int, Sequence[float]] = 30,
    title: str = "Shot distance",
    savefig: Optional[PathLike] = None,
) -> Figure:
    fig, ax = plt.subplots(figsize=(10, 4))
    made = df.loc[df["made"] == 1, "distance"].to_numpy(float)
    missed = df.loc[df["made"] == 0, "distance"].to_numpy(float)

    ax.hist(missed, bins=bins, alpha=0.55, color=MISS_COLOR, label=f"Missed ({len(missed):,})")
    ax.hist(made, bins=bins, alpha=0.55, color=MADE_COLOR, label=f"Made ({len(made):,})")
    ax.set_xlabel("Distance (ft)")
    ax.set_ylabel("Attempts")
    ax.set_title(title)
    ax.legend(loc="upper right", fontsize=9)
    return _finish(fig, savefig)


def plot_spray_chart(
    df: pd.DataFrame,
    *,
    title: str = "Shot chart",
    savefig: Optional[PathLike] = None,
) -> Figure:
    fig, ax = _court_fig()
    missed = df[df["made"] == 0]
    made = df[df["made"] == 1]

    ax.scatter(missed["x"], missed["y"], s=22, marker="x", c=MISS_COLOR, alpha=0.6, zorder=3, label="Missed")
    ax.scatter(made["x"], made["y"], s=22, marker="o", facecolors="none", edgecolors=MADE_COLOR,
               alpha=0.8, zorder=4, label="Made")
    ax.legend(loc="upper right", fontsize=9)
    ax.set_title(title)
    return _finish(fig, savefig)


def plot_density(
    df: pd.DataFrame,
    *,
    kind: str = "kde",
    gridsize: int = 30,
    title: str = "Shot density",
    savefig: Optional[PathLike] = None,
) -> Figure:
    if kind not in ("kde", "hexbin"):
        raise ValueError(f"density: unknown kind {kind!r} (expected 'kde' or 'hexbin')")

    fig, ax = _court_fig()
    if kind == "kde":
        sns.kdeplot(x=df["x"], y=df["y"], fill=True, cmap="YlOrRd", levels=20, thresh=0.05,
                    alpha=0.8, ax=ax, zorder=1)
    else:
        hb = ax.hexbin(df["x"], df["y"], gridsize=gridsize, cmap="YlOrRd", mincnt=1,
                       extent=COURT_BOUNDS, zorder=1)
        fig.colorbar(hb, ax=ax, shrink=0.7, label="Attempts")

    # seaborn resets limits
    setup_court_axes(ax)
    ax.set_title(title)
    return _finish(fig, savefig)


def plot_sector_choropleth(
    df: pd.DataFrame,
    *,
    distance_bins: Sequence[float] = (0.0, 8.0, 16.0, 24.0, 30.0),
    n_angles: int = 5,
    min_attempts: int = 10,
    title: str = "FG% by sector",
    savefig: Optional[PathLike] = None,
) -> Figure:
    sectors = sector_summary(df, distance_bins=distance_bins, n_angles=n_angles)

    fig, ax = _court_fig()
    cmap = matplotlib.colormaps["RdYlGn"]
    norm = Normalize(vmin=0.2, vmax=0.7)

    wedges, colors = [], []
    for _, s in sectors.iterrows():
        r_out = float(s["r_outer"]) * 10.0
        width = (float(s["r_outer"]) - float(s["r_inner"])) * 10.0
        wedges.append(Wedge((0, 0), r_out, float(s["theta1"]), float(s["theta2"]), width=width))

        enough = int(s["attempts"]) >= min_attempts
        colors.append(cmap(norm(float(s["fg_pct"]))) if enough else (0.85, 0.85, 0.85, 1.0))

        if int(s["attempts"]) > 0:
            mid = np.radians((float(s["theta1"]) + float(s["theta2"])) / 2.0)
            r_mid = (float(s["r_inner"]) + float(s["r_outer"])) / 2.0 * 10.0
            label = f"{float(s['fg_pct']):.0%}\n{int(s['attempts'])}" if enough else f"n={int(s['attempts'])}"
            ax.text(r_mid * np.cos(mid), r_mid * np.sin(mid), label, ha="center", va="center",
                    fontsize=7, zorder=5)

    coll = PatchCollection(wedges, facecolors=colors, edgecolors="white", linewidths=1.0, alpha=0.85, zorder=2)
    ax.add_collection(coll)

    sm = plt.cm.ScalarMappable(cmap=cmap, norm=norm)
    sm.set_array([])
    fig.colorbar(sm, ax=ax, shrink=0.7, label="FG%")
    ax.set_title(title)
    return _finish(fig, savefig)


def plot_voronoi(
    df: pd.DataFrame,
    *,
    title: str = "Voronoi tessellation of shots",
    savefig: Optional[PathLike] = None,
) -> Figure:
    polys = voronoi_cells(df)
    made = df["made"].to_numpy(int)

    fig, ax = _court_fig()
    keep = [i for i, p in enumerate(polys) if len(p)]
    coll = PolyCollection(
        [polys[i] for i in keep],
        facecolors=[MADE_COLOR if made[i] == 1 else MISS_COLOR for i in keep],
        edgecolors="white",
        linewidths=0.4,
        alpha=0.6,
        zorder=1,
    )
    ax.add_collection(coll)
    ax.scatter(df["x"], df["y"], s=4, c="black", zorder=3)
    setup_court_axes(ax)
    ax.set_title(title)
    return _finish(fig, savefig)


def plot_zone_bars(
    df: pd.DataFrame,
    *,
    title: str = "FG% by zone",
    savefig: Optional[PathLike] = None,
) -> Figure:
    summary = fg_summary(df, by="zone")
    order = [z for z in ZONE_ORDER if z in set(summary["zone"])]
    order += [z for z in summary["zone"] if z not in order]
    summary = summary.set_index("zone").loc[order].reset_index()

    fig, ax = plt.subplots(figsize=(10, 4))
    bars = ax.bar(summary["zone"], summary["fg_pct"], color="#1f77b4")
    for bar, n in zip(bars, summary["attempts"]):
        ax.text(bar.get_x() + bar.get_width() / 2, bar.get_height() + 0.01, f"n={int(n)}",
                ha="center", va="bottom", fontsize=8)
    ax.set_ylim(0, 1)
    ax.set_ylabel("FG%")
    ax.set_title(title)
    ax.tick_params(axis="x", labelrotation=20)
    return _finish(fig, savefig)

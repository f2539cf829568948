from __future__ import annotations

from typing import Optional

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.patches import Arc, Circle, Rectangle

from .config import COURT_BOUNDS


def draw_court(
    ax: Optional[Axes] = None,
    *,
    color: str = "black",
    lw: float = 1.5,
    outer_lines: bool = True,
) -> Axes:
    """
    Draw an NBA half court in stats.nba.com units (tenths of feet, hoop at the
    origin, baseline at y=-47.5). Returns the axes.
    """
    if ax is None:
        ax = plt.gca()

    elements = [
        # hoop + backboard
        Circle((0, 0), radius=7.5, linewidth=lw, color=color, fill=False),
        Rectangle((-30, -7.5), 60, -1, linewidth=lw, color=color),
        # paint: outer box, inner box
        Rectangle((-80, -47.5), 160, 190, linewidth=lw, color=color, fill=False),
        Rectangle((-60, -47.5), 120, 190, linewidth=lw, color=color, fill=False),
        # free throw circle, top solid / bottom dashed
        Arc((0, 142.5), 120, 120, theta1=0, theta2=180, linewidth=lw, color=color),
        Arc((0, 142.5), 120, 120, theta1=180, theta2=0, linewidth=lw, color=color, linestyle="dashed"),
        # restricted area
        Arc((0, 0), 80, 80, theta1=0, theta2=180, linewidth=lw, color=color),
        # three point line: corners + arc
        Rectangle((-220, -47.5), 0, 140, linewidth=lw, color=color),
        Rectangle((220, -47.5), 0, 140, linewidth=lw, color=color),
        Arc((0, 0), 475, 475, theta1=22, theta2=158, linewidth=lw, color=color),
        # center court
        Arc((0, 422.5), 120, 120, theta1=180, theta2=0, linewidth=lw, color=color),
        Arc((0, 422.5), 40, 40, theta1=180, theta2=0, linewidth=lw, color=color),
    ]

    if outer_lines:
        xmin, xmax, ymin, ymax = COURT_BOUNDS
        elements.append(
            Rectangle((xmin, ymin), xmax - xmin, ymax - ymin, linewidth=lw, color=color, fill=False)
        )

    for element in elements:
        ax.add_patch(element)

    return ax


def setup_court_axes(ax: Axes) -> None:
    xmin, xmax, ymin, ymax = COURT_BOUNDS
    ax.set_xlim(xmin, xmax)
    ax.set_ylim(ymin, ymax)
    ax.set_aspect("equal")
    ax.set_xticks([])
    ax.set_yticks([])
    for spine in ax.spines.values():
        spine.set_visible(False)

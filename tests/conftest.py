"""Shared pytest fixtures for shot analysis tests."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from shotstats.process import process_shots
from shotstats.zones import classify_zones


PLAYERS = [
    ("Alpha Guard", "Hawks", "G"),
    ("Beta Forward", "Hawks", "F"),
    ("Gamma Center", "Owls", "C"),
]


@pytest.fixture
def raw_shots():
    """400 synthetic shots in stats.nba.com column layout; make rate falls with distance."""
    rng = np.random.default_rng(7)
    n = 400
    who = rng.integers(0, len(PLAYERS), size=n)
    dist_ft = np.concatenate([rng.uniform(0.5, 6, n // 2), rng.uniform(12, 27, n - n // 2)])
    theta = rng.uniform(0.05, np.pi - 0.05, n)
    x = np.round(dist_ft * 10 * np.cos(theta))
    y = np.round(dist_ft * 10 * np.sin(theta))
    made = (rng.random(n) < np.clip(0.75 - 0.02 * dist_ft, 0.05, 0.95)).astype(int)

    return pd.DataFrame({
        "PLAYER_NAME": [PLAYERS[i][0] for i in who],
        "TEAM_NAME": [PLAYERS[i][1] for i in who],
        "POSITION": [PLAYERS[i][2] for i in who],
        "PERIOD": rng.integers(1, 5, size=n),
        "LOC_X": x,
        "LOC_Y": y,
        "SHOT_DISTANCE": np.floor(np.hypot(x, y) / 10).astype(int),
        "SHOT_MADE_FLAG": made,
        "SHOT_ZONE_BASIC": classify_zones(x, y),
    })


@pytest.fixture
def shots(raw_shots):
    return process_shots(raw_shots, name="sample").shots


@pytest.fixture
def lag_cells():
    """15x15 grid of cells whose FG% falls with distance from the hoop."""
    rng = np.random.default_rng(11)
    gx, gy = np.meshgrid(np.arange(-7, 8), np.arange(0, 15))
    x = (gx.ravel() + 0.5) * 20.0
    y = (gy.ravel() + 0.5) * 20.0
    distance = np.hypot(x, y) / 10.0
    fg_pct = 0.7 - 0.012 * distance + rng.normal(0, 0.03, size=distance.size)
    return pd.DataFrame({"x": x, "y": y, "distance": distance, "fg_pct": fg_pct, "attempts": 10})


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    import matplotlib.pyplot as plt
    plt.close("all")

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

import pandas as pd


REQUIRED_COLUMNS = ("x", "y", "made")
CANONICAL_COLUMNS = (
    "player",
    "team",
    "position",
    "period",
    "x",
    "y",
    "distance",
    "made",
    "zone",
    "zone_area",
    "zone_range",
    "shot_type",
)

# stats.nba.com shotchartdetail names and common spellings -> canonical
COLUMN_ALIASES: Dict[str, str] = {
    "player_name": "player",
    "shooter": "player",
    "team_name": "team",
    "team_abbreviation": "team",
    "pos": "position",
    "player_position": "position",
    "quarter": "period",
    "loc_x": "x",
    "loc_y": "y",
    "shot_distance": "distance",
    "dist": "distance",
    "shot_made_flag": "made",
    "shot_made": "made",
    "fgm": "made",
    "shot_zone_basic": "zone",
    "shot_zone_area": "zone_area",
    "shot_zone_range": "zone_range",
}

THREE_POINT_ZONES = ("Left Corner 3", "Right Corner 3", "Above the Break 3", "Backcourt")
ZONE_ORDER = (
    "Restricted Area",
    "In The Paint (Non-RA)",
    "Mid-Range",
    "Left Corner 3",
    "Right Corner 3",
    "Above the Break 3",
    "Backcourt",
)


@dataclass(frozen=True)
class ShotData:
    name: str
    shots: pd.DataFrame
    meta: Dict[str, Any]

"""Tests for shot cleaning, filtering and the processed folder."""

import numpy as np
import pandas as pd
import pytest

from shotstats.process import (
    filter_shots,
    load_processed,
    normalize_columns,
    process_shots,
    save_processed,
    top_players,
)
from shotstats.schemas import CANONICAL_COLUMNS


class TestNormalizeColumns:

    def test_nba_names_renamed(self, raw_shots):
        out = normalize_columns(raw_shots)
        for col in ["player", "team", "position", "period", "x", "y", "distance", "made", "zone"]:
            assert col in out.columns

    def test_event_type_used_when_no_flag(self):
        raw = pd.DataFrame({"LOC_X": [0], "LOC_Y": [5], "EVENT_TYPE": ["Made Shot"]})
        assert "made" in normalize_columns(raw).columns

    def test_flag_wins_over_event_type(self):
        raw = pd.DataFrame({"LOC_X": [0], "LOC_Y": [5], "EVENT_TYPE": ["Made Shot"], "SHOT_MADE_FLAG": [1]})
        out = normalize_columns(raw)
        assert "event_type" in out.columns
        assert out["made"].tolist() == [1]


class TestProcessShots:

    def test_contract(self, raw_shots):
        data = process_shots(raw_shots, name="sample")
        assert list(data.shots.columns[: len(CANONICAL_COLUMNS)]) == list(CANONICAL_COLUMNS)
        assert data.shots["made"].isin([0, 1]).all()
        assert data.shots["x"].dtype == float
        assert data.meta["rows_raw"] == len(raw_shots)
        assert data.meta["rows_kept"] == len(raw_shots)
        assert data.meta["teams"] == ["Hawks", "Owls"]

    def test_derives_distance_zone_and_type(self):
        raw = pd.DataFrame({
            "loc_x": [0, -230, 0],
            "loc_y": [10, 20, 260],
            "shot_made_flag": [1, 0, 1],
        })
        shots = process_shots(raw).shots
        assert shots["distance"].tolist() == pytest.approx([1.0, np.hypot(230, 20) / 10, 26.0])
        assert shots["zone"].tolist() == ["Restricted Area", "Left Corner 3", "Above the Break 3"]
        assert shots["shot_type"].tolist() == ["2PT Field Goal", "3PT Field Goal", "3PT Field Goal"]

    def test_string_outcomes(self):
        raw = pd.DataFrame({
            "LOC_X": [0, 10, 20, 30],
            "LOC_Y": [5, 5, 5, 5],
            "EVENT_TYPE": ["Made Shot", "Missed Shot", "made", "garbage"],
        })
        shots = process_shots(raw).shots
        assert shots["made"].tolist() == [1, 0, 1]

    def test_bad_rows_dropped(self):
        raw = pd.DataFrame({
            "LOC_X": [0, "oops", 10, 20],
            "LOC_Y": [5, 5, None, 5],
            "SHOT_MADE_FLAG": [1, 0, 1, 2],
        })
        data = process_shots(raw)
        assert len(data.shots) == 1
        assert data.meta["rows_raw"] == 4

    def test_missing_coordinates_raise(self):
        with pytest.raises(ValueError, match="missing required columns"):
            process_shots(pd.DataFrame({"LOC_X": [1], "SHOT_MADE_FLAG": [1]}))

    def test_nothing_usable_raises(self):
        raw = pd.DataFrame({"LOC_X": [0, 1], "LOC_Y": [0, 1], "SHOT_MADE_FLAG": [5, 7]})
        with pytest.raises(ValueError, match="no usable shots"):
            process_shots(raw)


class TestFilterShots:

    def test_scalar_and_list_arguments(self, shots):
        one = filter_shots(shots, players="Alpha Guard")
        many = filter_shots(shots, players=["Alpha Guard"])
        pd.testing.assert_frame_equal(one, many)
        assert set(one["player"]) == {"Alpha Guard"}

    def test_conditions_combine(self, shots):
        out = filter_shots(shots, teams="Hawks", min_distance=10, max_distance=20, made=1)
        assert (out["team"] == "Hawks").all()
        assert out["distance"].between(10, 20).all()
        assert (out["made"] == 1).all()

    def test_period_filter(self, shots):
        out = filter_shots(shots, periods=[1, 2])
        assert set(out["period"].astype(int)) <= {1, 2}
        assert len(out) > 0

    def test_no_match_is_empty_not_error(self, shots):
        assert filter_shots(shots, players="Nobody").empty

    def test_no_arguments_returns_everything(self, shots):
        assert len(filter_shots(shots)) == len(shots)


def test_top_players_ranked_by_attempts(shots):
    out = top_players(shots, n=2)
    assert len(out) == 2
    assert out["attempts"].is_monotonic_decreasing
    assert out.loc[0, "fg_pct"] == pytest.approx(out.loc[0, "makes"] / out.loc[0, "attempts"])


def test_top_players_min_attempts(shots):
    assert top_players(shots, min_attempts=10_000).empty


def test_save_and_load_processed(tmp_path, raw_shots):
    data = process_shots(raw_shots, name="sample")
    out_dir = save_processed(data, tmp_path)

    assert (out_dir / "shots.csv.gz").exists()
    assert (out_dir / "meta.json").exists()

    back = load_processed(out_dir)
    assert back.name == "sample"
    assert back.meta["rows_kept"] == len(data.shots)
    assert back.shots["made"].tolist() == data.shots["made"].tolist()
    assert back.shots["zone"].tolist() == data.shots["zone"].tolist()


def test_load_processed_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_processed(tmp_path / "nothing")


def test_source_recorded_in_meta(raw_shots):
    data = process_shots(raw_shots, "data/raw/season.csv", name="season")
    assert data.meta["source"] == "data/raw/season.csv"
    assert data.name == "season"
    assert process_shots(raw_shots).meta["source"] == ""


def test_source_survives_save_and_load(tmp_path, raw_shots):
    data = process_shots(raw_shots, "https://example.org/shots.csv", name="remote")
    back = load_processed(save_processed(data, tmp_path))
    assert back.meta["source"] == "https://example.org/shots.csv"


def test_top_players_positional_arguments(shots):
    out = top_players(shots, 2, 1)
    pd.testing.assert_frame_equal(out, top_players(shots, n=2, min_attempts=1))


def test_missing_columns_message_lists_what_was_found():
    with pytest.raises(ValueError, match=r"shots: missing required columns: \['y'\] \(have"):
        process_shots(pd.DataFrame({"LOC_X": [1], "SHOT_MADE_FLAG": [1]}))

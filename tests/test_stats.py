"""Tests for FG summaries, t-tests and chi-square tests."""

import pandas as pd
import pytest

from shotstats.stats import (
    chi_square,
    compare_fg_pct,
    compare_means,
    distance_profile,
    distance_ttest,
    fg_summary,
)


class TestFgSummary:

    def test_overall(self, shots):
        out = fg_summary(shots)
        assert len(out) == 1
        row = out.iloc[0]
        assert row["attempts"] == len(shots)
        assert row["makes"] == shots["made"].sum()
        assert row["fg_pct"] == pytest.approx(shots["made"].mean())

    def test_grouped_sorted_by_attempts(self, shots):
        out = fg_summary(shots, by="player")
        assert set(out["player"]) == {"Alpha Guard", "Beta Forward", "Gamma Center"}
        assert out["attempts"].is_monotonic_decreasing
        assert out["attempts"].sum() == len(shots)

    def test_unknown_group_column(self, shots):
        with pytest.raises(ValueError, match="missing required columns"):
            fg_summary(shots, by="coach")


def test_distance_profile_bands(shots):
    out = distance_profile(shots, [0, 8, 16, 24])
    assert [str(b) for b in out["band"]] == ["0-8 ft", "8-16 ft", "16-24 ft", "24+ ft"]
    assert out["attempts"].sum() == len(shots)


class TestCompareMeans:

    def test_hand_computed_statistic(self):
        df = pd.DataFrame({"g": ["a"] * 3 + ["b"] * 3, "v": [1, 2, 3, 4, 5, 6]})
        res = compare_means(df, "v", "g", "a", "b")
        assert res.mean_a == 2.0
        assert res.mean_b == 5.0
        assert res.n_a == res.n_b == 3
        assert res.statistic == pytest.approx(-3.674235, rel=1e-5)
        assert 0 < res.pvalue < 0.05
        assert res.equal_var is False

    def test_too_few_observations(self):
        df = pd.DataFrame({"g": ["a", "b", "b"], "v": [1, 2, 3]})
        with pytest.raises(ValueError, match="at least 2"):
            compare_means(df, "v", "g", "a", "b")

    def test_made_shots_are_closer(self, shots):
        res = distance_ttest(shots)
        assert res.value == "distance"
        assert res.mean_a < res.mean_b
        assert res.pvalue < 0.01
        assert res.n_a + res.n_b == len(shots)
        assert res.to_dict()["group"] == "made"


class TestChiSquare:

    def test_zone_vs_outcome(self, shots):
        res = chi_square(shots, "zone")
        assert res.table.values.sum() == len(shots)
        assert res.dof == (res.table.shape[0] - 1) * (res.table.shape[1] - 1)
        assert res.expected.shape == res.table.shape
        assert res.pvalue < 0.05

    def test_degenerate_table(self, shots):
        with pytest.raises(ValueError, match="2x2"):
            chi_square(shots[shots["player"] == "Alpha Guard"], "player")

    def test_compare_two_players(self, shots):
        res = compare_fg_pct(shots, "player", "Alpha Guard", "Gamma Center")
        assert list(res.table.index) == ["Alpha Guard", "Gamma Center"]
        assert res.dof == 1
        payload = res.to_dict()
        assert set(payload["table"]) == {"Alpha Guard", "Gamma Center"}

"""Tests for the report builder and CLI argument handling."""

import json
import sys

import numpy as np
import pytest

from shotstats import report
from shotstats.config import AnalysisConfig
from shotstats.report import _json_safe, build_report, main


def test_build_report_writes_charts_and_summary(shots, tmp_path):
    cfg = AnalysisConfig(k=6, permutations=49, cell_size=40.0, min_cell_attempts=2, lag_method="gm")
    summary = build_report(shots, tmp_path, cfg)

    for name in ["spray_chart.png", "sectors.png", "voronoi.png", "density_kde.png", "summary.json"]:
        assert (tmp_path / name).exists()

    on_disk = json.loads((tmp_path / "summary.json").read_text())
    assert on_disk["overall"]["attempts"] == len(shots)
    assert on_disk["distance_ttest"]["group"] == "made"
    assert on_disk["morans_i"]["permutations"] == 49
    assert summary["cells"] > 0


def test_build_report_tolerates_thin_slices(shots, tmp_path):
    thin = shots.head(5)
    summary = build_report(thin, tmp_path, AnalysisConfig(k=8, permutations=9))
    assert summary["morans_i"] is None
    assert summary["spatial_lag"] is None
    assert summary["overall"]["attempts"] == 5


@pytest.mark.parametrize("argv", [[], ["--csv", "a.csv", "--url", "https://example.org/a.csv"]])
def test_main_requires_exactly_one_source(monkeypatch, argv):
    monkeypatch.setattr(sys, "argv", ["shotstats-report", *argv])
    with pytest.raises(SystemExit):
        main()


def test_main_end_to_end(monkeypatch, tmp_path, raw_shots, capsys):
    csv = tmp_path / "season.csv"
    raw_shots.to_csv(csv, index=False)
    monkeypatch.setattr(sys, "argv", [
        "shotstats-report",
        "--csv", str(csv),
        "--team", "Hawks",
        "--out", str(tmp_path / "reports"),
        "--processed", str(tmp_path / "processed"),
        "--permutations", "19",
        "--method", "gm",
    ])
    main()

    assert (tmp_path / "processed" / "season" / "shots.csv.gz").exists()
    assert (tmp_path / "reports" / "season" / "summary.json").exists()
    meta = json.loads((tmp_path / "processed" / "season" / "meta.json").read_text())
    assert meta["source"] == str(csv)
    assert "Saved report" in capsys.readouterr().out


def _reject_constant(token):
    raise ValueError(f"non-standard JSON constant {token}")


def test_summary_is_strict_json_when_bands_are_empty(shots, tmp_path):
    # nothing past 20 ft, so the far distance bands have no attempts
    near = shots[shots["distance"] < 20]
    summary = build_report(near, tmp_path, AnalysisConfig(k=6, permutations=9))

    text = (tmp_path / "summary.json").read_text()
    on_disk = json.loads(text, parse_constant=_reject_constant)
    far = [b for b in on_disk["by_distance"] if b["attempts"] == 0]
    assert far
    assert all(b["fg_pct"] is None for b in far)
    assert on_disk == summary


def test_json_safe_converts_numpy_and_nan():
    out = _json_safe({
        "a": np.float64("nan"),
        "b": np.int64(3),
        "c": [np.inf, 1.5, None],
        "d": np.bool_(True),
        5: "five",
    })
    assert out == {"a": None, "b": 3, "c": [None, 1.5, None], "d": True, "5": "five"}
    assert type(out["b"]) is int
    json.dumps(out, allow_nan=False)


def test_lag_model_uses_its_own_k(shots, tmp_path, monkeypatch):
    seen = {}

    def fake_lag(cells, **kwargs):
        seen.update(kwargs)
        raise ValueError("not enough cells")

    monkeypatch.setattr(report, "spatial_lag_regression", fake_lag)
    summary = build_report(shots, tmp_path, AnalysisConfig(k=5, lag_k=9, permutations=9))
    assert seen["k"] == 9
    assert summary["morans_i"]["k"] == 5
    assert summary["spatial_lag"] is None


def test_main_passes_lag_k(monkeypatch, tmp_path, raw_shots):
    csv = tmp_path / "season.csv"
    raw_shots.to_csv(csv, index=False)
    seen = {}

    def fake_build(shots, out_dir, cfg):
        seen["cfg"] = cfg
        return {"overall": {"attempts": len(shots), "fg_pct": 0.5},
                "distance_ttest": None, "morans_i": None, "spatial_lag": None}

    monkeypatch.setattr(report, "build_report", fake_build)
    monkeypatch.setattr(sys, "argv", [
        "shotstats-report",
        "--csv", str(csv),
        "--out", str(tmp_path / "reports"),
        "--processed", str(tmp_path / "processed"),
        "--k", "4",
        "--lag-k", "12",
    ])
    main()
    assert seen["cfg"].k == 4
    assert seen["cfg"].lag_k == 12

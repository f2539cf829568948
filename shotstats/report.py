from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from . import charts  # noqa: E402
from .config import CFG, PROCESSED_DIR, RAW_CACHE_DIR, AnalysisConfig  # noqa: E402
from .io import fetch_csv, load_csv  # noqa: E402
from .process import filter_shots, process_shots, save_processed  # noqa: E402
from .spatial import aggregate_cells, morans_i, ols_baseline, spatial_lag_regression  # noqa: E402
from .stats import chi_square, distance_profile, distance_ttest, fg_summary  # noqa: E402

logger = logging.getLogger(__name__)


def _try(label: str, fn, *args, **kwargs):
    # a thin slice (one player, few cells) can make a single test undefined
    try:
        return fn(*args, **kwargs)
    except ValueError as e:
        logger.warning("Skipping %s: %s", label, e)
        return None


def _json_safe(obj):
    """Plain JSON types only; NaN and inf (empty bands, degenerate tests) become null."""
    if isinstance(obj, dict):
        return {str(k): _json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_json_safe(v) for v in obj]
    if isinstance(obj, (bool, np.bool_)):
        return bool(obj)
    if isinstance(obj, (int, np.integer)):
        return int(obj)
    if isinstance(obj, (float, np.floating)):
        return float(obj) if np.isfinite(obj) else None
    if obj is None or isinstance(obj, str):
        return obj
    if pd.isna(obj):
        return None
    return str(obj)


def _fmt(v, spec: str) -> str:
    return "n/a" if v is None else format(v, spec)


def build_report(shots, out_dir: Path, cfg: AnalysisConfig = CFG) -> Dict[str, Any]:
    out_dir.mkdir(parents=True, exist_ok=True)

    figures = {
        "distance_histogram.png": lambda p: charts.plot_distance_histogram(shots, savefig=p),
        "spray_chart.png": lambda p: charts.plot_spray_chart(shots, savefig=p),
        "density_kde.png": lambda p: charts.plot_density(shots, kind="kde", savefig=p),
        "density_hexbin.png": lambda p: charts.plot_density(shots, kind="hexbin", savefig=p),
        "sectors.png": lambda p: charts.plot_sector_choropleth(
            shots,
            distance_bins=cfg.distance_bins,
            n_angles=cfg.n_angles,
            min_attempts=cfg.min_sector_attempts,
            savefig=p,
        ),
        "voronoi.png": lambda p: charts.plot_voronoi(shots, savefig=p),
        "zones.png": lambda p: charts.plot_zone_bars(shots, savefig=p),
    }
    for name, draw in figures.items():
        fig = _try(name, draw, out_dir / name)
        if fig is not None:
            plt.close(fig)

    ttest = _try("distance t-test", distance_ttest, shots)
    chi_zone = _try("zone chi-square", chi_square, shots, "zone")
    chi_type = _try("shot type chi-square", chi_square, shots, "shot_type")
    moran = _try(
        "Moran's I", morans_i, shots, value="made", k=cfg.k, permutations=cfg.permutations, seed=cfg.seed
    )

    cells = aggregate_cells(shots, cell_size=cfg.cell_size, min_attempts=cfg.min_cell_attempts)
    lag = _try(
        "spatial lag", spatial_lag_regression, cells, y="fg_pct", x=cfg.x_vars, k=cfg.lag_k, method=cfg.lag_method
    )
    ols = _try("OLS baseline", ols_baseline, cells, y="fg_pct", x=cfg.x_vars)

    summary = {
        "overall": fg_summary(shots).to_dict(orient="records")[0],
        "by_zone": fg_summary(shots, by="zone").to_dict(orient="records"),
        "by_distance": distance_profile(shots, cfg.distance_bins).astype({"band": str}).to_dict(orient="records"),
        "distance_ttest": ttest.to_dict() if ttest else None,
        "zone_chi_square": chi_zone.to_dict() if chi_zone else None,
        "shot_type_chi_square": chi_type.to_dict() if chi_type else None,
        "morans_i": moran.to_dict() if moran else None,
        "cells": int(len(cells)),
        "spatial_lag": lag.to_dict() if lag else None,
        "ols": ols,
    }
    summary = _json_safe(summary)
    (out_dir / "summary.json").write_text(json.dumps(summary, indent=2, allow_nan=False))
    if lag is not None:
        (out_dir / "spatial_lag.txt").write_text(lag.summary)

    return summary


def main() -> None:
    ap = argparse.ArgumentParser(description="Shot report: load -> filter -> charts + tests.")
    ap.add_argument("--csv", default=None, help="Path to a local shot CSV.")
    ap.add_argument("--url", default=None, help="URL of a shot CSV (cached under data/raw).")
    ap.add_argument("--name", default=None, help="Dataset name for the processed folder.")
    ap.add_argument("--player", action="append", default=None, help="Keep only this player (repeatable).")
    ap.add_argument("--team", action="append", default=None, help="Keep only this team (repeatable).")
    ap.add_argument("--out", default="reports", help="Output root for charts and summary.json.")
    ap.add_argument("--processed", default=str(PROCESSED_DIR), help="Output root for the processed table.")
    ap.add_argument("--k", type=int, default=CFG.k, help="Neighbours for spatial weights.")
    ap.add_argument("--permutations", type=int, default=CFG.permutations)
    ap.add_argument("--lag-k", type=int, default=CFG.lag_k, help="Neighbours for the spatial lag model (grid cells).")
    ap.add_argument("--method", choices=["ml", "gm"], default=CFG.lag_method, help="Spatial lag estimator.")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if bool(args.csv) == bool(args.url):
        raise SystemExit("Provide exactly one of --csv or --url")

    if args.csv:
        raw = load_csv(args.csv)
        name = args.name or Path(args.csv).name.split(".")[0]
    else:
        raw = fetch_csv(args.url, cache_dir=RAW_CACHE_DIR)
        name = args.name or "download"

    data = process_shots(raw, args.csv or args.url, name=name)
    processed_dir = save_processed(data, Path(args.processed))

    shots = filter_shots(data.shots, players=args.player, teams=args.team)
    if shots.empty:
        raise SystemExit(f"No shots left after filtering (players={args.player}, teams={args.team})")

    cfg = AnalysisConfig(k=args.k, lag_k=args.lag_k, permutations=args.permutations, lag_method=args.method)
    out_dir = Path(args.out) / name
    summary = build_report(shots, out_dir, cfg)

    overall = summary["overall"]
    print(f"✅ Saved report to: {out_dir}")
    print(f"processed:  {processed_dir}")
    print(f"shots:      {overall['attempts']:,} (FG {_fmt(overall['fg_pct'], '.1%')})")
    if summary["distance_ttest"]:
        t = summary["distance_ttest"]
        print(
            f"t-test:     made {_fmt(t['mean_a'], '.1f')} ft vs missed {_fmt(t['mean_b'], '.1f')} ft "
            f"(p={_fmt(t['pvalue'], '.3g')})"
        )
    if summary["morans_i"]:
        m = summary["morans_i"]
        print(f"Moran's I:  {_fmt(m['I'], '.4f')} (p_sim={m['p_sim']}, k={m['k']})")
    if summary["spatial_lag"]:
        lag = summary["spatial_lag"]
        print(
            f"lag model:  rho={_fmt(lag['rho'], '.3f')} pseudo R2={_fmt(lag['pseudo_r2'], '.3f')} "
            f"on {lag['n']} cells (k={lag['k']})"
        )


if __name__ == "__main__":
    main()

from __future__ import annotations

import json
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import streamlit as st

from shotstats import charts
from shotstats.config import CFG, PROCESSED_DIR
from shotstats.io import load_csv_bytes
from shotstats.process import filter_shots, load_processed, process_shots, top_players
from shotstats.schemas import ZONE_ORDER
from shotstats.spatial import aggregate_cells, morans_i, spatial_lag_regression
from shotstats.stats import chi_square, compare_fg_pct, distance_ttest, fg_summary

# -----------------------------------------------------------------------------
# Page config + header
# -----------------------------------------------------------------------------
st.set_page_config(page_title="Shot Explorer", layout="wide")
st.title("Shot Explorer")
st.caption("Filter shots, switch chart types, and check whether location and outcome are related.")


# -----------------------------------------------------------------------------
# Paths
#
# Processed datasets live under:
#   data/processed/<name>/shots.csv.gz
#   data/processed/<name>/meta.json
# -----------------------------------------------------------------------------
_REQUIRED_FILES = ("shots.csv.gz",)

CHARTS = {
    "Spray chart": "spray",
    "Density (KDE)": "kde",
    "Density (hexbin)": "hexbin",
    "Sectors (FG%)": "sectors",
    "Voronoi": "voronoi",
    "Distance histogram": "hist",
    "FG% by zone": "zones",
}


def _is_dataset_dir(p: Path) -> bool:
    if not p.is_dir():
        return False
    return all((p / f).exists() for f in _REQUIRED_FILES)


@st.cache_data(show_spinner=False)
def list_datasets() -> list[str]:
    if not PROCESSED_DIR.exists():
        return []
    return sorted(p.name for p in PROCESSED_DIR.iterdir() if _is_dataset_dir(p))


@st.cache_data(show_spinner=False)
def load_dataset(name: str) -> tuple[pd.DataFrame, dict]:
    data = load_processed(PROCESSED_DIR / name)
    return data.shots, data.meta


@st.cache_data(show_spinner=False)
def load_upload(raw: bytes, filename: str) -> tuple[pd.DataFrame, dict]:
    data = process_shots(load_csv_bytes(raw), filename, name=Path(filename).name.split(".")[0])
    return data.shots, data.meta


@st.cache_data(show_spinner="Running Moran's I...")
def cached_moran(shots: pd.DataFrame, k: int, permutations: int):
    return morans_i(shots, value="made", k=k, permutations=permutations, seed=CFG.seed)


@st.cache_data(show_spinner="Fitting spatial lag model...")
def cached_lag(shots: pd.DataFrame, cell_size: float, k: int, method: str):
    cells = aggregate_cells(shots, cell_size=cell_size, min_attempts=CFG.min_cell_attempts)
    return cells, spatial_lag_regression(cells, y="fg_pct", x=CFG.x_vars, k=k, method=method)


def _options(df: pd.DataFrame, col: str) -> list:
    return sorted(df[col].dropna().astype(str).unique().tolist())


def draw_chart(kind: str, shots: pd.DataFrame):
    if kind == "spray":
        return charts.plot_spray_chart(shots)
    if kind in ("kde", "hexbin"):
        return charts.plot_density(shots, kind=kind)
    if kind == "sectors":
        return charts.plot_sector_choropleth(
            shots,
            distance_bins=CFG.distance_bins,
            n_angles=CFG.n_angles,
            min_attempts=CFG.min_sector_attempts,
        )
    if kind == "voronoi":
        return charts.plot_voronoi(shots)
    if kind == "hist":
        return charts.plot_distance_histogram(shots)
    return charts.plot_zone_bars(shots)


# -----------------------------------------------------------------------------
# UI
# -----------------------------------------------------------------------------
datasets = list_datasets()

with st.sidebar:
    st.subheader("Data")
    upload = st.file_uploader("Upload shot CSV", type=["csv", "gz"])
    dataset = st.selectbox("Processed dataset", datasets) if datasets else None

if upload is not None:
    try:
        shots_df, meta = load_upload(upload.getvalue(), upload.name)
    except ValueError as e:
        st.error(f"Could not read {upload.name}: {e}")
        st.stop()
elif dataset is not None:
    shots_df, meta = load_dataset(dataset)
else:
    st.error(
        "No processed datasets found.\n\n"
        "Upload a CSV in the sidebar, or run:\n"
        "  python -m shotstats.report --csv <path>\n"
        "to create data/processed/<name>/shots.csv.gz"
    )
    st.stop()

with st.sidebar:
    st.subheader("Filter")
    teams = st.multiselect("Team", _options(shots_df, "team"))
    pool = filter_shots(shots_df, teams=teams or None)
    players = st.multiselect("Player", _options(pool, "player"))
    positions = st.multiselect("Position", _options(pool, "position"))
    zone_opts = [z for z in ZONE_ORDER if z in set(pool["zone"].astype(str))]
    zones = st.multiselect("Zone", zone_opts)

    max_d = float(np.ceil(shots_df["distance"].max())) if len(shots_df) else 50.0
    d_lo, d_hi = st.slider("Distance (ft)", 0.0, max(max_d, 1.0), (0.0, max(max_d, 1.0)), 1.0)

    st.subheader("Chart")
    chart_label = st.radio("Chart", list(CHARTS), label_visibility="collapsed")

shots = filter_shots(
    shots_df,
    teams=teams or None,
    players=players or None,
    positions=positions or None,
    zones=zones or None,
    min_distance=d_lo,
    max_distance=d_hi,
)

if shots.empty:
    st.warning("No shots match the current filters.")
    st.stop()

overall = fg_summary(shots).iloc[0]
c_a, c_b, c_c, c_d = st.columns(4)
c_a.metric("Attempts", f"{int(overall['attempts']):,}")
c_b.metric("Makes", f"{int(overall['makes']):,}")
c_c.metric("FG%", f"{overall['fg_pct']:.1%}")
c_d.metric("Mean distance", f"{overall['mean_distance']:.1f} ft")

c_chart, c_tables = st.columns([1.6, 1])

with c_chart:
    try:
        fig = draw_chart(CHARTS[chart_label], shots)
        st.pyplot(fig, use_container_width=True)
        plt.close(fig)
    except ValueError as e:
        st.warning(f"{chart_label} unavailable for this selection: {e}")

with c_tables:
    st.subheader("By zone")
    st.dataframe(fg_summary(shots, by="zone"), hide_index=True, use_container_width=True)
    st.subheader("Top shooters")
    st.dataframe(top_players(shots, n=10), hide_index=True, use_container_width=True)

st.subheader("Tests")
t_col, chi_col = st.columns(2)

with t_col:
    st.markdown("**Distance: made vs missed (Welch t-test)**")
    try:
        t = distance_ttest(shots)
        st.write(
            f"made {t.mean_a:.1f} ft (n={t.n_a}) vs missed {t.mean_b:.1f} ft (n={t.n_b}) — "
            f"t = {t.statistic:.2f}, p = {t.pvalue:.3g}"
        )
    except ValueError as e:
        st.info(str(e))

with chi_col:
    st.markdown("**Zone vs outcome (chi-square)**")
    try:
        chi = chi_square(shots, "zone")
        st.write(f"χ² = {chi.statistic:.2f}, dof = {chi.dof}, p = {chi.pvalue:.3g}")
        st.dataframe(chi.table, use_container_width=True)
    except ValueError as e:
        st.info(str(e))

player_list = _options(shots, "player")
if len(player_list) >= 2:
    with st.expander("Compare two players", expanded=False):
        p1 = st.selectbox("Player A", player_list, index=0)
        p2 = st.selectbox("Player B", player_list, index=1)
        if p1 != p2:
            try:
                res = compare_fg_pct(shots, "player", p1, p2)
                st.write(f"χ² = {res.statistic:.2f}, p = {res.pvalue:.3g}")
                st.dataframe(res.table, use_container_width=True)
            except ValueError as e:
                st.info(str(e))

with st.expander("Spatial autocorrelation", expanded=False):
    k_ui = st.slider("Neighbours for Moran's I (k)", 2, 20, CFG.k, 1)
    lag_k_ui = st.slider("Neighbours for lag model (k)", 2, 12, CFG.lag_k, 1)
    perms = st.select_slider("Permutations", [99, 199, 499, 999], value=CFG.permutations)
    cell_size = st.slider("Cell size (tenths of ft)", 10, 60, int(CFG.cell_size), 5)
    method = st.radio("Lag estimator", ["ml", "gm"], horizontal=True)
    try:
        mi = cached_moran(shots, k_ui, perms)
        st.write(f"Moran's I = {mi.I:.4f} (E[I] = {mi.expected_I:.4f}), p_sim = {mi.p_sim}, z = {mi.z_norm:.2f}")
    except ValueError as e:
        st.info(str(e))

    try:
        cells, lag = cached_lag(shots, float(cell_size), lag_k_ui, method)
        st.write(
            f"Spatial lag on {lag.n} cells: rho = {lag.rho:.3f}, pseudo R² = {lag.pseudo_r2:.3f}"
        )
        st.json(lag.coefficients)
        st.text(lag.summary)
    except ValueError as e:
        st.info(str(e))

with st.expander("Debug", expanded=False):
    st.write({"rows": int(len(shots)), "processed_dir": str(PROCESSED_DIR)})
    st.json(json.loads(json.dumps(meta, default=str)))

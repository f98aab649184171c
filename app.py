# app.py
# -------------------------------
# Streamlit dashboard for the SMA crossover brute-force search
# -------------------------------

import io

import pandas as pd
import plotly.express as px
import streamlit as st

from analysis import results_frame, run_symbol
from config import DATE_FILTER, INITIAL_CAPITAL, INPUT_FILE, MAX_PERIOD, TOP_N, SearchConfig
from data import list_symbols, load_multistock_csv
from io_utils import append_ranked_block, write_rank_header

# ---------------------------------------------
# Page config
# ---------------------------------------------
st.set_page_config(
    page_title="SMA Grid Search",
    layout="wide",
    initial_sidebar_state="expanded"
)
st.title("📈 SMA Crossover Grid Search")


@st.cache_data(show_spinner=False)
def load_table(file_bytes: bytes) -> pd.DataFrame:
    return load_multistock_csv(file_bytes)


@st.cache_data(show_spinner="Running grid search...")
def search_symbol(file_bytes: bytes, symbol: str, date_filter: str, max_period: int,
                  initial_capital: float, top_n: int):
    table = load_table(file_bytes)
    report = run_symbol(table, symbol, date_filter=date_filter,
                        search=SearchConfig(max_period=max_period),
                        initial_capital=initial_capital, top_n=top_n, verbose=False)
    return report


# ---------------------------------------------
# Sidebar: Inputs
# ---------------------------------------------
st.sidebar.header("Parameters")

file_source = st.sidebar.radio("Data source", ["Upload CSV", f"Read ./{INPUT_FILE}"], horizontal=True)

file_bytes = None
if file_source == "Upload CSV":
    uploaded = st.sidebar.file_uploader("Wide price table (Date,SYM1,SYM2,...)", type=["csv"])
    if uploaded is not None:
        file_bytes = uploaded.getvalue()
else:
    try:
        with open(INPUT_FILE, "rb") as f:
            file_bytes = f.read()
        st.sidebar.info(f"Loaded ./{INPUT_FILE}")
    except FileNotFoundError:
        st.sidebar.error(f"./{INPUT_FILE} not found, upload a CSV instead.")

if file_bytes is None:
    st.warning("Upload a CSV or place it next to the app, then run the search.")
    st.stop()

try:
    table = load_table(file_bytes)
except ValueError as e:
    st.error(f"Failed to read CSV: {e}")
    st.stop()

symbol = st.sidebar.selectbox("Symbol", list_symbols(table))
date_filter = st.sidebar.text_input("Date filter (substring)", value=DATE_FILTER)
col1, col2 = st.sidebar.columns(2)
max_period = col1.number_input("Max period", min_value=2, max_value=MAX_PERIOD, value=64, step=1)
top_n = col2.number_input("Top N", min_value=1, max_value=200, value=TOP_N, step=1)
initial_capital = st.sidebar.number_input("Initial capital", min_value=100.0, max_value=1_000_000.0,
                                          value=INITIAL_CAPITAL, step=1000.0)

run_btn = st.sidebar.button("▶ Run search", use_container_width=True)

# ---------------------------------------------
# Main: Run & Display
# ---------------------------------------------
if not run_btn:
    st.info("Set the parameters, then click **Run search** in the sidebar.")
    st.stop()

try:
    report = search_symbol(file_bytes, symbol, date_filter, int(max_period), float(initial_capital), int(top_n))
except (KeyError, ValueError) as e:
    st.error(str(e))
    st.stop()

summary = report.summary
st.subheader(f"{symbol}: {report.trading_days} trading days (index {report.start_idx} ~ {report.end_idx})")
kpi = st.columns(4)
best = report.ranked[0]
kpi[0].metric("Best pair", f"{best.short_period} / {best.long_period}")
kpi[1].metric("Best return", f"{best.return_pct:.2f}%")
kpi[2].metric("Profitable combos", f"{summary['profitable']} / {summary['combinations']}")
kpi[3].metric("Median return", f"{summary['median_return_pct']:.2f}%")

st.subheader(f"Top {len(report.ranked)}")
ranked_df = pd.DataFrame([vars(e) for e in report.ranked])
st.dataframe(ranked_df, use_container_width=True, height=400)

buf = io.StringIO()
write_rank_header(buf)
append_ranked_block(buf, symbol, report.ranked, is_first=True)
st.download_button("Download ranked CSV", buf.getvalue().encode("utf-8"),
                   file_name=f"sma_rank_{symbol}.csv", use_container_width=True)

st.subheader("Final capital over the grid")
grid = results_frame(report.results).pivot(index="short_period", columns="long_period", values="final_capital")
fig = px.imshow(grid, origin="lower", aspect="auto", color_continuous_scale="RdYlGn",
                labels={"x": "Long period", "y": "Short period", "color": "Final capital"})
st.plotly_chart(fig, use_container_width=True, theme="streamlit")

st.caption(
    f"Filter: {date_filter} | Initial capital: ${initial_capital:,.0f} | "
    f"Whole shares, filled at the crossover day's close, forced exit on the last day"
)

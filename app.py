import dataclasses

import streamlit as st

from stratos.analyze import analyze_file
from stratos.domain import DEFAULT_FORMAT, PRESET_CONFIGS, AbsorbPolicy, AnalysisConfig
from stratos.render import make_plot_figure
from stratos.report import issues_frame, phases_frame, series_frame, summary

MAX_LOG_MB = 20


# -----------------------------
# Streamlit page setup
# -----------------------------
st.set_page_config(page_title="Stratos", layout="wide")
st.title("🎈 Stratos - Stratosphere Balloon Log Analyzer")
st.write("Upload a flight log, pick an analysis preset, and get ascent/float/descent phases and rates.")


# -----------------------------
# Session-state helper
# -----------------------------
def _load_config_into_state(c: AnalysisConfig) -> None:
    st.session_state["c_ascent_threshold"] = float(c.ascent_threshold)
    st.session_state["c_descent_threshold"] = float(c.descent_threshold)
    st.session_state["c_min_phase_duration"] = float(c.min_phase_duration)
    st.session_state["c_smoothing_window"] = int(c.smoothing_window)


# -----------------------------
# Sidebar: log format + config
# -----------------------------
with st.sidebar:
    st.header("Log format")
    delimiter = st.selectbox("Delimiter", options=[",", ";", "\t"], index=0,
                             format_func=lambda d: {"\t": "tab"}.get(d, d))

    st.divider()
    st.header("Analysis")

    preset_name = st.selectbox("Preset", options=list(PRESET_CONFIGS.keys()), index=0)
    preset = PRESET_CONFIGS[preset_name]

    if st.session_state.get("selected_preset") != preset_name:
        st.session_state["selected_preset"] = preset_name
        _load_config_into_state(preset)

    edit = st.checkbox("Edit values", value=False)
    if st.button("Reset to preset"):
        _load_config_into_state(preset)

    if edit:
        st.number_input("Ascent threshold (m/s)", step=0.1, key="c_ascent_threshold")
        st.number_input("Descent threshold (m/s)", step=0.1, key="c_descent_threshold")
        st.number_input("Min phase duration (s)", step=10.0, key="c_min_phase_duration")
        st.number_input("Smoothing window (samples, odd)", step=2, min_value=1, key="c_smoothing_window")
    else:
        st.write(dataclasses.asdict(preset) | {"absorb_policy": preset.absorb_policy.value})

    absorb = st.radio("Short phases join", options=[p.value for p in AbsorbPolicy], index=0, horizontal=True)
    resample = st.number_input("Resample interval (s, 0 = off)", min_value=0.0, value=0.0, step=1.0)


if edit:
    config = dataclasses.replace(
        preset,
        name=f"{preset.name} (edited)",
        ascent_threshold=float(st.session_state["c_ascent_threshold"]),
        descent_threshold=float(st.session_state["c_descent_threshold"]),
        min_phase_duration=float(st.session_state["c_min_phase_duration"]),
        smoothing_window=int(st.session_state["c_smoothing_window"]),
    )
else:
    config = preset
config = dataclasses.replace(
    config,
    absorb_policy=AbsorbPolicy(absorb),
    resample_interval=float(resample) if resample > 0 else None,
)

st.caption(f"Active config: **{config.name}**")


# -----------------------------
# Upload
# -----------------------------
uploaded = st.file_uploader("Upload flight log", type=["csv", "txt", "log"])

if uploaded is None:
    st.info("Upload a log to begin.")
    st.stop()


# -----------------------------
# Run analysis
# -----------------------------
fmt = dataclasses.replace(DEFAULT_FORMAT, delimiter=delimiter)
try:
    report = analyze_file(uploaded, config, fmt=fmt, max_bytes=MAX_LOG_MB * 1024 * 1024)
except ValueError as e:
    st.error(str(e))
    st.stop()

if report.is_empty:
    st.error(f"No readings accepted from {report.lines_read} lines.")
    if report.issues:
        st.dataframe(issues_frame(report), use_container_width=True)
    st.stop()


# -----------------------------
# Display results
# -----------------------------
info = summary(report)
col1, col2, col3, col4 = st.columns(4)
col1.metric("Accepted readings", f"{report.accepted} / {report.lines_read}")
col2.metric("Max altitude (m)", f"{info['max_altitude']:.0f}")
col3.metric("Duration (min)", f"{info['duration_s'] / 60:.1f}")
col4.metric("Issues", len(report.issues))

st.subheader("Summary")
st.json(info)

st.subheader("Flight phases")
st.dataframe(phases_frame(report), use_container_width=True)

st.subheader("Plot")
fig = make_plot_figure(report.series, report.phases, config, title=f"Balloon flight - {uploaded.name}")
st.pyplot(fig, clear_figure=True)

st.download_button(
    "Download series (CSV)",
    data=series_frame(report).to_csv(index=False),
    file_name=f"{uploaded.name.rsplit('.', 1)[0]}_series.csv",
    mime="text/csv",
)

st.subheader("Log issues")
if report.issues:
    st.dataframe(issues_frame(report), use_container_width=True)
else:
    st.success("No corrupt or out-of-order lines.")

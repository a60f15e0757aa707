import numpy as np
import plotly.graph_objects as go
import streamlit as st

from analysis import format_report
from config import (
    CSV_FILENAME,
    DEFAULT_DISTURBANCE,
    DEFAULT_GAINS,
    DEFAULT_TARGET,
    load_settings,
)
from export import debug_to_csv
from logger import setup_logging
from pid import PIDGains
from simulation import (
    ContinuousSimulation,
    SimulationInputs,
    SimulationMode,
    TickDriver,
    run_batch,
)

# =======================
# PAGE CONFIG
# =======================
st.set_page_config(page_title="DC Motor PID", layout="wide")
setup_logging()

SETTINGS = load_settings()

# the live view touches the driver every LIVE_REFRESH seconds; a closed
# session stops touching it and the tick thread winds down
LIVE_REFRESH = 0.2
DRIVER_IDLE_TIMEOUT = 5.0


# =======================
# SESSION DEFAULTS
# =======================
def _ss_set_default(key, value):
    if key not in st.session_state:
        st.session_state[key] = value


_ss_set_default("Kp", DEFAULT_GAINS.kp)
_ss_set_default("Ki", DEFAULT_GAINS.ki)
_ss_set_default("Kd", DEFAULT_GAINS.kd)
_ss_set_default("target", DEFAULT_TARGET)
_ss_set_default("disturbance", DEFAULT_DISTURBANCE)
_ss_set_default("mode", SETTINGS.mode.value)
_ss_set_default("batch", None)

if "continuous" not in st.session_state:
    sim = ContinuousSimulation(SETTINGS.motor, SETTINGS.inputs,
                               dt=SETTINGS.dt, window=SETTINGS.window)
    st.session_state.continuous = sim
    st.session_state.driver = TickDriver(sim, idle_timeout=DRIVER_IDLE_TIMEOUT)


# =======================
# HELPERS
# =======================
def current_inputs() -> SimulationInputs:
    return SimulationInputs(
        gains=PIDGains(
            kp=float(st.session_state.Kp),
            ki=float(st.session_state.Ki),
            kd=float(st.session_state.Kd),
        ),
        target=float(st.session_state.target),
        disturbance=float(st.session_state.disturbance),
        load_torque=SETTINGS.inputs.load_torque,
    )


def response_figure(samples):
    t = np.array([s.time for s in samples])
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=t, y=[s.angle for s in samples],
        mode="lines",
        name="angle",
    ))
    fig.add_trace(go.Scatter(
        x=t, y=[s.target for s in samples],
        mode="lines",
        name="target",
        line=dict(dash="dash"),
    ))
    fig.update_layout(
        title="Motor Position Response",
        xaxis_title="Time (s)",
        yaxis_title="Angle (deg)",
        height=380,
    )
    return fig


def rotor_figure(angle_deg: float):
    # rotor drawn as a bar from the hub, rotated by the current angle
    a = np.deg2rad(angle_deg)
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=[0.0, np.cos(a)], y=[0.0, np.sin(a)],
        mode="lines",
        line=dict(width=10, color="blue"),
        showlegend=False,
    ))
    fig.update_xaxes(range=[-1.2, 1.2], visible=False)
    fig.update_yaxes(range=[-1.2, 1.2], visible=False, scaleanchor="x")
    fig.update_layout(height=260, width=260, margin=dict(l=10, r=10, t=10, b=10))
    return fig


def show_results(samples, debug, angle):
    col1, col2 = st.columns([2, 1], gap="large")
    with col1:
        st.plotly_chart(response_figure(samples), use_container_width=True)
    with col2:
        st.plotly_chart(rotor_figure(angle), use_container_width=False)
        st.metric("Angle", f"{angle:.4f}")
    st.download_button(
        "Download Debug Data",
        data=debug_to_csv(debug),
        file_name=CSV_FILENAME,
        mime="text/csv",
    )


# =======================
# SIDEBAR
# =======================
st.title("DC Motor Position Control with PID")

with st.sidebar:
    st.header("PID Gains")
    st.number_input("Kp", step=0.1, format="%.4f", key="Kp")
    st.number_input("Ki", step=0.1, format="%.4f", key="Ki")
    st.number_input("Kd", step=0.1, format="%.4f", key="Kd")

    st.header("Reference")
    st.number_input("Target angle", step=0.1, key="target")
    st.number_input("Disturbance", step=0.1, key="disturbance")

    st.header("Simulation")
    st.selectbox(
        "Simulation mode",
        [m.value for m in SimulationMode],
        format_func=lambda v: "Continuous" if v == SimulationMode.CONTINUOUS.value else "MATLAB",
        key="mode",
    )

mode = SimulationMode(st.session_state.mode)
sim: ContinuousSimulation = st.session_state.continuous
driver: TickDriver = st.session_state.driver
driver.touch()

# =======================
# MATLAB (BATCH) MODE
# =======================
if mode is SimulationMode.MATLAB:
    if sim.is_running:
        sim.stop()
        driver.stop()

    if st.button("Run MATLAB Simulation", type="primary"):
        st.session_state.batch = run_batch(
            SETTINGS.motor, current_inputs(),
            dt=SETTINGS.dt, duration=SETTINGS.duration,
        )

    result = st.session_state.batch
    if result is None:
        st.info("Set the gains and click **Run MATLAB Simulation**.")
    else:
        show_results(result.samples, result.debug, result.angle)
        st.subheader("Output Log")
        st.code(format_report(result.metrics), language=None)

# =======================
# CONTINUOUS MODE
# =======================
else:
    sim.set_inputs(current_inputs())

    c1, c2 = st.columns(2)
    if c1.button("Stop Simulation" if sim.is_running else "Start Simulation", type="primary"):
        if sim.toggle():
            driver.start()
        else:
            driver.stop()
        st.rerun()
    if c2.button("Reset"):
        sim.reset()

    @st.fragment(run_every=LIVE_REFRESH if sim.is_running else None)
    def live_view():
        driver.touch()
        show_results(sim.samples, sim.debug_samples, sim.angle)

    live_view()

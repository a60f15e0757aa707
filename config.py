"""
Configuration for the DC motor position simulator.

Defaults mirror the MATLAB model (10 ms step, 100 s batch run,
unit step target). An optional TOML file can override any of them:

    [motor]
    J = 0.01
    b = 0.1
    K = 0.01
    R = 1.0
    L = 0.5

    [pid]
    kp = 60.54
    ki = 79.8022
    kd = 45.4818

    [simulation]
    mode = "matlab"        # or "continuous"
    target = 1.0
    disturbance = 0.0
    load_torque = 0.0
    dt = 0.01
    duration = 100.0
    window = 100
"""
import logging
import tomllib
from dataclasses import dataclass, field
from typing import Optional

from motor import DCMotorParams
from pid import PIDGains
from simulation import (
    BATCH_DURATION,
    DISPLAY_WINDOW,
    DT,
    SimulationInputs,
    SimulationMode,
)

log = logging.getLogger("config")

# =======================
# DEFAULTS
# =======================

DEFAULT_GAINS = PIDGains()
DEFAULT_TARGET = 1.0    # unit step
DEFAULT_DISTURBANCE = 0.0
DEFAULT_MODE = SimulationMode.CONTINUOUS

CSV_FILENAME = "debug_data.csv"


@dataclass
class SimulationSettings:
    motor: DCMotorParams = field(default_factory=DCMotorParams)
    inputs: SimulationInputs = field(default_factory=SimulationInputs)
    mode: SimulationMode = DEFAULT_MODE
    dt: float = DT
    duration: float = BATCH_DURATION
    window: int = DISPLAY_WINDOW


def _load_toml(path: str) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_settings(path: Optional[str] = None) -> SimulationSettings:
    """
    Builds SimulationSettings from a TOML file. Missing sections or keys
    keep their defaults; path=None returns the defaults unchanged.
    """
    if path is None:
        return SimulationSettings()

    cfg = _load_toml(path)
    log.info("Loaded simulation config from %s", path)

    m = cfg.get("motor", {})
    base = DCMotorParams()
    motor = DCMotorParams(
        J=float(m.get("J", base.J)),
        b=float(m.get("b", base.b)),
        K=float(m.get("K", base.K)),
        R=float(m.get("R", base.R)),
        L=float(m.get("L", base.L)),
    )

    p = cfg.get("pid", {})
    gains = PIDGains(
        kp=float(p.get("kp", DEFAULT_GAINS.kp)),
        ki=float(p.get("ki", DEFAULT_GAINS.ki)),
        kd=float(p.get("kd", DEFAULT_GAINS.kd)),
    )

    s = cfg.get("simulation", {})
    mode_name = str(s.get("mode", DEFAULT_MODE.value)).lower()
    try:
        mode = SimulationMode(mode_name)
    except ValueError:
        raise ValueError(f"Unknown simulation mode: {mode_name}") from None

    inputs = SimulationInputs(
        gains=gains,
        target=float(s.get("target", DEFAULT_TARGET)),
        disturbance=float(s.get("disturbance", DEFAULT_DISTURBANCE)),
        load_torque=float(s.get("load_torque", 0.0)),
    )

    return SimulationSettings(
        motor=motor,
        inputs=inputs,
        mode=mode,
        dt=float(s.get("dt", DT)),
        duration=float(s.get("duration", BATCH_DURATION)),
        window=int(s.get("window", DISPLAY_WINDOW)),
    )

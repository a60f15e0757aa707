from dataclasses import dataclass
from typing import NamedTuple

import numpy as np


@dataclass(frozen=True)
class PIDGains:
    kp: float = 60.54
    ki: float = 79.8022
    kd: float = 45.4818


@dataclass(frozen=True)
class PIDState:
    integral_error: float = 0.0
    last_error: float = 0.0


class PIDUpdate(NamedTuple):
    output: float
    state: PIDState
    error: float
    derivative_error: float


def compute(target: float, measured: float, disturbance: float,
            state: PIDState, gains: PIDGains, dt: float) -> PIDUpdate:
    """
    Discrete PID on the position error.

    The disturbance is added to the error signal (a sensing/reference
    offset), not to the plant torque. With last_error starting at 0 the
    first derivative term is error/dt.
    """
    e = target - measured + disturbance
    integral = state.integral_error + e * dt
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        derivative = float(np.float64(e - state.last_error) / dt)
    u = gains.kp * e + gains.ki * integral + gains.kd * derivative
    return PIDUpdate(u, PIDState(integral_error=integral, last_error=e), e, derivative)


class PIDController:
    def __init__(self, gains: PIDGains = PIDGains(), dt: float = 0.01):
        self.gains = gains
        self.dt = dt
        self.reset()

    def reset(self):
        self.state = PIDState()

    def update(self, target: float, measured: float, disturbance: float = 0.0) -> PIDUpdate:
        result = compute(target, measured, disturbance, self.state, self.gains, self.dt)
        self.state = result.state
        return result

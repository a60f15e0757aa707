from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class DCMotorParams:
    J: float = 0.01   # rotor inertia [kg·m²]
    b: float = 0.1    # viscous friction [N·m·s]
    K: float = 0.01   # torque / back-emf constant [N·m/A]
    R: float = 1.0    # armature resistance [Ω]
    L: float = 0.5    # armature inductance [H]


@dataclass(frozen=True)
class MotorState:
    current: float = 0.0   # A
    velocity: float = 0.0  # angle units / s
    angle: float = 0.0


def advance(p: DCMotorParams, state: MotorState, V: float,
            load_torque: float = 0.0, dt: float = 0.01) -> MotorState:
    """
    One forward-Euler step of
      dω/dt = (K*i + τ_load - b*ω)/J
      di/dt = (V - R*i - K*ω)/L
      dθ/dt = ω

    Velocity is updated first and the *new* velocity advances the angle.
    J and L must be non-zero; zero gives inf/nan rather than an error.
    """
    torque = p.K * state.current + load_torque
    back_emf = p.K * state.velocity
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        accel = float(np.float64(torque - p.b * state.velocity) / p.J)
        di = float(np.float64(V - p.R * state.current - back_emf) / p.L)
    w = state.velocity + accel * dt
    i = state.current + di * dt
    theta = state.angle + w * dt
    return MotorState(current=i, velocity=w, angle=theta)


class DCMotorSim:
    """
    Stateful wrapper around `advance` with a fixed step size.
    """
    def __init__(self, params: DCMotorParams, dt: float = 0.01):
        self.p = params
        self.dt = dt
        self.reset()

    def reset(self, state: MotorState = MotorState()):
        self.state = state

    def step(self, V: float, load_torque: float = 0.0) -> MotorState:
        self.state = advance(self.p, self.state, V, load_torque, self.dt)
        return self.state

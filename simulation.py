"""
Closed-loop simulation of the DC motor position loop.

Two run modes built on the same plant and controller steps:

    • MATLAB (batch):   reset, run ceil(duration / dt) steps, analyze.
    • Continuous:       one step per external tick, state carried between
                        ticks until reset(); no terminal analysis.

Batch runs thread immutable states through `step_once`; continuous mode
keeps them in a `DCMotorSim` and a `PIDController`. Both call `compute`
then `advance` in the same order, so N continuous ticks and a batch run
of N steps produce identical sequences.

Typical usage::

    result = run_batch(DCMotorParams(), SimulationInputs())
    print(format_report(result.metrics))

    sim = ContinuousSimulation(DCMotorParams(), SimulationInputs())
    driver = TickDriver(sim, idle_timeout=5.0)
    sim.start(); driver.start()
    ...
    driver.stop(); sim.stop()

No input validation is done: a zero dt or non-finite gain propagates
inf/NaN through the trajectory.
"""
import logging
import math
import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from time import monotonic
from typing import Deque, List, NamedTuple, Optional

import numpy as np

from analysis import PerformanceMetrics, analyze
from motor import DCMotorParams, DCMotorSim, MotorState, advance
from pid import PIDController, PIDGains, PIDState, PIDUpdate, compute

log = logging.getLogger("simulation")

DT = 0.01
BATCH_DURATION = 100.0
DISPLAY_WINDOW = 100


class SimulationMode(Enum):
    CONTINUOUS = "continuous"
    MATLAB = "matlab"


@dataclass(frozen=True)
class SimulationInputs:
    gains: PIDGains = field(default_factory=PIDGains)
    target: float = 1.0
    disturbance: float = 0.0
    load_torque: float = 0.0


class Sample(NamedTuple):
    time: float
    angle: float
    target: float


class DebugSample(NamedTuple):
    time: float
    angle: float
    target: float
    error: float
    integral_error: float
    derivative_error: float
    pid_output: float
    current: float
    velocity: float

    def sample(self) -> Sample:
        return Sample(self.time, self.angle, self.target)


class StepResult(NamedTuple):
    motor: MotorState
    pid: PIDState
    debug: DebugSample


def _debug_row(time: float, inputs: SimulationInputs, u: PIDUpdate,
               nxt: MotorState) -> DebugSample:
    return DebugSample(
        time=time,
        angle=nxt.angle,
        target=inputs.target,
        error=u.error,
        integral_error=u.state.integral_error,
        derivative_error=u.derivative_error,
        pid_output=u.output,
        current=nxt.current,
        velocity=nxt.velocity,
    )


def step_once(params: DCMotorParams, motor: MotorState, pid: PIDState,
              inputs: SimulationInputs, time: float, dt: float) -> StepResult:
    """Controller on the previous angle, then one plant step driven by its output."""
    u = compute(inputs.target, motor.angle, inputs.disturbance, pid, inputs.gains, dt)
    nxt = advance(params, motor, u.output, inputs.load_torque, dt)
    return StepResult(nxt, u.state, _debug_row(time, inputs, u, nxt))


# ------------------------------------------------------------
# Batch (MATLAB) mode
# ------------------------------------------------------------

@dataclass(frozen=True)
class BatchResult:
    samples: List[Sample]
    debug: List[DebugSample]
    metrics: PerformanceMetrics
    final_state: MotorState

    @property
    def angle(self) -> float:
        return self.final_state.angle


def batch_steps(duration: float, dt: float) -> int:
    """
    Same count as `for (i = 0; i < duration / dt; i++)`. A zero, negative
    or non-finite dt and a duration <= 0 give no steps (an empty run)
    rather than an error or an endless loop.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        n = np.float64(duration) / dt
    if not np.isfinite(n) or n <= 0:
        return 0
    return math.ceil(n)


def run_batch(params: DCMotorParams, inputs: SimulationInputs,
              dt: float = DT, duration: float = BATCH_DURATION) -> BatchResult:
    """
    Fresh run from zero state. Sequences are built locally and only
    returned once the loop has finished.
    """
    n = batch_steps(duration, dt)
    log.info("Batch run: %d steps (dt=%g, duration=%g) target=%g disturbance=%g",
             n, dt, duration, inputs.target, inputs.disturbance)

    motor = MotorState()
    pid = PIDState()
    samples: List[Sample] = []
    debug: List[DebugSample] = []

    for k in range(n):
        motor, pid, row = step_once(params, motor, pid, inputs, k * dt, dt)
        samples.append(row.sample())
        debug.append(row)

    metrics = analyze(samples, inputs.target, dt)
    log.info("Batch run done: rise=%d settle=%d overshoot=%.2f%%",
             metrics.rise_time_steps, metrics.settling_time_steps,
             metrics.overshoot_percent)
    return BatchResult(samples, debug, metrics, motor)


# ------------------------------------------------------------
# Continuous mode
# ------------------------------------------------------------

class ContinuousSimulation:
    """
    Incremental run driven by an external periodic tick.

    Each tick takes one step from the carried state. Inputs changed with
    set_inputs() apply from the next tick on. Ticks are serialized by a
    lock so a host that fires them concurrently cannot interleave steps.
    """

    def __init__(self, params: DCMotorParams, inputs: SimulationInputs,
                 dt: float = DT, window: int = DISPLAY_WINDOW):
        self.params = params
        self.dt = dt
        self._inputs = inputs
        self._lock = threading.Lock()
        self._running = False
        self.motor = DCMotorSim(params, dt)
        self.controller = PIDController(inputs.gains, dt)
        self._samples: Deque[Sample] = deque(maxlen=window)
        self._debug: List[DebugSample] = []
        self._reset_state()

    def _reset_state(self):
        self.motor.reset()
        self.controller.reset()
        self._k = 0
        self._samples.clear()
        self._debug.clear()

    # --- control ---
    @property
    def is_running(self) -> bool:
        return self._running

    def start(self):
        with self._lock:
            self._running = True
        log.info("Continuous simulation started at t=%g", self._k * self.dt)

    def stop(self):
        with self._lock:
            self._running = False
        log.info("Continuous simulation stopped at t=%g", self._k * self.dt)

    def toggle(self) -> bool:
        if self._running:
            self.stop()
        else:
            self.start()
        return self._running

    def reset(self):
        with self._lock:
            self._reset_state()
        log.info("Continuous simulation reset")

    def set_inputs(self, inputs: SimulationInputs):
        with self._lock:
            self._inputs = inputs
            self.controller.gains = inputs.gains

    @property
    def inputs(self) -> SimulationInputs:
        return self._inputs

    # --- stepping ---
    def tick(self) -> Optional[DebugSample]:
        """Advance one step if running; returns the new row or None."""
        with self._lock:
            if not self._running:
                return None
            inp = self._inputs
            u = self.controller.update(inp.target, self.motor.state.angle, inp.disturbance)
            nxt = self.motor.step(u.output, inp.load_torque)
            row = _debug_row(self._k * self.dt, inp, u, nxt)
            self._k += 1
            self._samples.append(row.sample())
            self._debug.append(row)
            return row

    # --- views ---
    @property
    def angle(self) -> float:
        return self.motor.state.angle

    @property
    def motor_state(self) -> MotorState:
        return self.motor.state

    @property
    def pid_state(self) -> PIDState:
        return self.controller.state

    @property
    def step_count(self) -> int:
        return self._k

    @property
    def samples(self) -> List[Sample]:
        with self._lock:
            return list(self._samples)

    @property
    def debug_samples(self) -> List[DebugSample]:
        with self._lock:
            return list(self._debug)


class TickDriver:
    """
    Background thread calling sim.tick() every `period` seconds
    (defaults to the simulation step) until stop().

    With idle_timeout set, the owner must call touch() at least that often;
    otherwise the thread stops the simulation and exits on its own. A web
    session that goes away without calling stop() therefore does not leave
    the thread running.
    """

    def __init__(self, sim: ContinuousSimulation, period: Optional[float] = None,
                 idle_timeout: Optional[float] = None):
        self.sim = sim
        self.period = sim.dt if period is None else period
        self.idle_timeout = idle_timeout
        self._last_touch = monotonic()
        self._shutdown = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def touch(self):
        self._last_touch = monotonic()

    def start(self):
        if self.alive:
            return
        self.touch()
        self._shutdown.clear()
        self._thread = threading.Thread(target=self._loop, name="sim-tick", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0):
        self._shutdown.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None

    def _idle(self) -> bool:
        return (self.idle_timeout is not None
                and monotonic() - self._last_touch > self.idle_timeout)

    def _loop(self):
        while not self._shutdown.wait(self.period):
            if self._idle():
                log.info("Tick driver idle for %gs, stopping", self.idle_timeout)
                self.sim.stop()
                break
            self.sim.tick()

"""
Step-response metrics for a simulated angle trajectory.

Definitions follow the MATLAB step-response script, including its quirks:

- Rise time:      first index with angle >= 0.9 * target.
- Settling time:  first index with |angle - target| <= 0.02 * target.
                  First touch of the band, not "stays in band".
- Overshoot:      (max(angle) - target) / target * 100, negative if the
                  response never passes the target.
- Steady-state:   |last angle - target| * 100. Only a percentage of the
                  target when target == 1.

Indices that are never reached are reported as -1 and converted to time
the same way as any other index (so -1 becomes -dt seconds). An empty
run has no peak (-inf) and no last sample (NaN steady-state error).
"""
import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

import numpy as np

log = logging.getLogger("analysis")

NOT_FOUND = -1
RISE_FRACTION = 0.9
SETTLING_BAND = 0.02


@dataclass(frozen=True)
class PerformanceMetrics:
    rise_time_steps: int
    settling_time_steps: int
    overshoot_percent: float
    steady_state_error_percent: float
    peak_value: float
    dt: float

    @property
    def rise_time(self) -> float:
        return self.rise_time_steps * self.dt

    @property
    def settling_time(self) -> float:
        return self.settling_time_steps * self.dt


def _first_index(mask: np.ndarray) -> int:
    hits = np.flatnonzero(mask)
    return int(hits[0]) if hits.size else NOT_FOUND


def analyze(samples: Sequence, target: float, dt: float) -> PerformanceMetrics:
    """
    Parameters
    ----------
    samples : sequence of objects with an ``angle`` attribute, in time order
    target : float
        Step target; must be non-zero for the overshoot division.
    dt : float
        Step size, stored so rise/settling indices can be turned into seconds.
    """
    y = np.fromiter((s.angle for s in samples), dtype=float, count=len(samples))

    with np.errstate(divide="ignore", invalid="ignore"):
        rise = _first_index(y >= RISE_FRACTION * target)
        settle = _first_index(np.abs(y - target) <= SETTLING_BAND * target)
        # NaN anywhere gives a NaN peak, as Math.max would
        peak = float(np.max(y, initial=-np.inf))
        overshoot = float(np.float64(peak - target) / np.float64(target) * 100)
        sse = abs(float(y[-1]) - target) * 100 if y.size else math.nan

    log.debug("analyze: n=%d rise=%d settle=%d peak=%g", len(y), rise, settle, peak)
    return PerformanceMetrics(
        rise_time_steps=rise,
        settling_time_steps=settle,
        overshoot_percent=overshoot,
        steady_state_error_percent=sse,
        peak_value=peak,
        dt=dt,
    )


def to_fixed(x: float, digits: int = 2) -> str:
    """
    Fixed-point text as the dashboard has always shown it: ties round away
    from zero (0.125 -> "0.13"), non-finite values read Infinity / NaN, and
    magnitudes from 1e21 up fall back to the exponent form.
    """
    x = float(x)
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if abs(x) >= 1e21:
        from export import format_number
        return format_number(x)
    if x == 0:
        x = 0.0  # drop the sign of -0.0
    q = Decimal(x).quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)
    return f"{q:f}"


def format_report(m: PerformanceMetrics) -> str:
    return "\n".join([
        f"Rise time: {to_fixed(m.rise_time)} s",
        f"Overshoot: {to_fixed(m.overshoot_percent)}%",
        f"Settling time: {to_fixed(m.settling_time)} s",
        "The system is stable.",
        f"Steady-state error: {to_fixed(m.steady_state_error_percent)}%",
    ])

"""
CSV export of the debug trail.

The file layout is fixed so existing spreadsheets keep working:

    Time,Angle,Target,Error,IntegralError,DerivativeError,PIDOutput,Current,Velocity
    0,0,1,1,0.01,100,4609.518022,92.19036044,0
    0.01,0.009219036044000001,1,1,0.02,0,62.136044,91.58927411120001,0.9219036044000001
    ...

Rows are joined with a bare newline and there is no trailing newline.
Numbers use the shortest round-trip digits (zero-padded for large integral
values, so 2**60 is 1152921504606847000), no fractional part on integral
values, and exponent notation only outside [1e-6, 1e21).
"""
import logging
import math
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Iterator, Union

from simulation import DebugSample

log = logging.getLogger("export")

CSV_HEADER = "Time,Angle,Target,Error,IntegralError,DerivativeError,PIDOutput,Current,Velocity"


def format_number(x: float) -> str:
    x = float(x)
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == 0:
        return "0"
    ax = abs(x)
    if x.is_integer() and ax < 2 ** 53:
        return str(int(x))
    s = repr(x)
    if 1e-6 <= ax < 1e21:
        if "e" in s:
            s = format(Decimal(s), "f")
        return s[:-2] if s.endswith(".0") else s
    # exponent form: "1e-07" -> "1e-7", "1.5e+22" stays
    mant, exp = s.split("e")
    sign = "-" if exp.startswith("-") else "+"
    return f"{mant}e{sign}{exp.lstrip('+-').lstrip('0') or '0'}"


def debug_rows(debug: Iterable[DebugSample]) -> Iterator[str]:
    for row in debug:
        yield ",".join(format_number(v) for v in row)


def debug_to_csv(debug: Iterable[DebugSample]) -> str:
    return "\n".join([CSV_HEADER, *debug_rows(debug)])


def write_debug_csv(path: Union[str, Path], debug: Iterable[DebugSample]) -> Path:
    path = Path(path)
    text = debug_to_csv(debug)
    path.write_text(text, encoding="utf-8")
    log.info("Wrote debug trail to %s", path)
    return path

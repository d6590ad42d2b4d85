# redgreen/utils.py
from __future__ import annotations

import re

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*(ns|us|µs|ms|s|m|h)?\s*$")

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def format_duration(secs: float) -> str:
    """Human-readable duration (e.g. '452ms', '2.4s', '1m 23s', '2h 5m')."""
    if secs < 1:
        return f"{secs * 1000:.0f}ms"
    if secs < 60:
        return f"{secs:.1f}s"
    mins, secs = divmod(secs, 60)
    if mins < 60:
        return f"{int(mins)}m {secs:.0f}s"
    hrs, mins = divmod(mins, 60)
    return f"{int(hrs)}h {int(mins)}m"


def parse_duration(value: str | int | float) -> float:
    """
    Parse a duration into seconds.

    Numbers are taken as seconds. Strings may carry a unit suffix:
    ns, us, ms, s, m or h ("250ms", "5s", "1.5m"). A bare number string is
    seconds.

    Raises:
        ValueError: If the value is negative or not a duration
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        if value < 0:
            raise ValueError(f"duration cannot be negative: {value!r}")
        return float(value)

    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    number, unit = match.groups()
    return float(number) * _UNIT_SECONDS[unit or "s"]

from __future__ import annotations

from datetime import datetime, timezone
import math

_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def to_datetime(ms: float) -> datetime:
    return datetime.fromtimestamp(float(ms) / 1000.0, tz=timezone.utc)


def format_long_date(ms: float) -> str:
    """Long-form date such as ``October 18, 2026`` (UTC)."""
    dt = to_datetime(ms)
    return f"{_MONTHS[dt.month - 1]} {dt.day}, {dt.year}"


def format_value(value: float | int | str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(int(value))
    v = float(value)
    if not math.isfinite(v):
        return str(v)
    if v.is_integer():
        return str(int(v))
    return repr(v)


def format_time_tick(ms: float) -> str:
    """Label a time-axis tick at the coarsest granularity that describes it."""
    dt = to_datetime(ms)
    if dt.microsecond != 0:
        return f".{dt.microsecond // 1000:03d}"
    if dt.second != 0:
        return f":{dt.second:02d}"
    if dt.minute != 0:
        return dt.strftime("%I:%M")
    if dt.hour != 0:
        return dt.strftime("%I %p")
    if dt.day != 1:
        # Python weekday(): Sunday is 6.
        if dt.weekday() != 6:
            return dt.strftime("%a %d")
        return dt.strftime("%b %d")
    if dt.month != 1:
        return _MONTHS[dt.month - 1]
    return str(dt.year)

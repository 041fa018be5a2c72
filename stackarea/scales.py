from __future__ import annotations

import bisect
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
import math
from typing import Any, Sequence

import numpy as np

from stackarea.defaults import DEFAULT_SERIES_COLOR
from stackarea.series import SeriesData, StackedBand
from stackarea.stack import top_totals


LOGGER = logging.getLogger(__name__)

RGBA = tuple[int, int, int, int]

SECOND_MS = 1000.0
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
WEEK_MS = 7 * DAY_MS
MONTH_MS = 30 * DAY_MS
YEAR_MS = 365 * DAY_MS

# (unit, step, approximate duration in ms), ascending by duration.
_TIME_INTERVALS: tuple[tuple[str, int, float], ...] = (
    ("second", 1, SECOND_MS),
    ("second", 5, 5 * SECOND_MS),
    ("second", 15, 15 * SECOND_MS),
    ("second", 30, 30 * SECOND_MS),
    ("minute", 1, MINUTE_MS),
    ("minute", 5, 5 * MINUTE_MS),
    ("minute", 15, 15 * MINUTE_MS),
    ("minute", 30, 30 * MINUTE_MS),
    ("hour", 1, HOUR_MS),
    ("hour", 3, 3 * HOUR_MS),
    ("hour", 6, 6 * HOUR_MS),
    ("hour", 12, 12 * HOUR_MS),
    ("day", 1, DAY_MS),
    ("day", 2, 2 * DAY_MS),
    ("week", 1, WEEK_MS),
    ("month", 1, MONTH_MS),
    ("month", 3, 3 * MONTH_MS),
    ("year", 1, YEAR_MS),
)

_UNIT_MS = {"second": SECOND_MS, "minute": MINUTE_MS, "hour": HOUR_MS, "day": DAY_MS}


@dataclass
class LinearScale:
    """Continuous domain -> pixel range mapping.

    A zero-span domain maps every value onto the start of the range.
    """

    domain: tuple[float, float] = (0.0, 1.0)
    range: tuple[float, float] = (0.0, 1.0)

    def __call__(self, value: Any) -> Any:
        d0, d1 = self.domain
        r0, r1 = self.range
        span = d1 - d0
        arr = np.asarray(value, dtype=np.float64)
        if span == 0:
            out = np.full(arr.shape, r0, dtype=np.float64)
        else:
            out = r0 + (arr - d0) / span * (r1 - r0)
        if out.ndim == 0:
            return float(out)
        return out

    def set_range(self, r0: float, r1: float) -> "LinearScale":
        self.range = (float(r0), float(r1))
        return self


@dataclass
class TimeScale(LinearScale):
    """Linear scale over epoch-millisecond timestamps with calendar ticks."""

    def ticks(self, count: int) -> np.ndarray:
        return generate_time_ticks(self.domain[0], self.domain[1], count)


def time_domain(series: SeriesData) -> tuple[float, float]:
    if series.is_empty():
        return (0.0, 0.0)
    return (float(np.min(series.x)), float(np.max(series.x)))


def value_domain(bands: Sequence[StackedBand], count: int = 10) -> tuple[float, float]:
    """``[0, max stacked total]`` rounded to a nice upper bound."""
    totals = top_totals(list(bands))
    if totals.size == 0:
        return (0.0, 1.0)
    vmax = float(np.max(totals))
    if vmax == 0.0 or not np.isfinite(vmax):
        return (0.0, 1.0)
    return nice_linear_domain(0.0, vmax, count)


def nice_linear_domain(vmin: float, vmax: float, count: int = 10) -> tuple[float, float]:
    if count <= 0:
        raise ValueError("count must be > 0")
    if vmin == vmax:
        return (vmin, vmax)
    lo, hi = vmin, vmax
    # Two passes: the first rounding can widen the span enough to change the step.
    for _ in range(2):
        step = linear_tick_step(lo, hi, count)
        if step <= 0 or not np.isfinite(step):
            break
        a, b = (lo, hi) if lo <= hi else (hi, lo)
        a = _snap(math.floor(a / step) * step, step)
        b = _snap(math.ceil(b / step) * step, step)
        lo, hi = (a, b) if vmin <= vmax else (b, a)
    return (lo, hi)


def linear_tick_step(vmin: float, vmax: float, count: int) -> float:
    span = abs(vmax - vmin)
    if span == 0 or count <= 0:
        return 0.0
    step = 10 ** math.floor(math.log10(span / count))
    err = count / span * step
    if err <= 0.15:
        step *= 10
    elif err <= 0.35:
        step *= 5
    elif err <= 0.75:
        step *= 2
    return float(step)


def generate_time_ticks(tmin: float, tmax: float, count: int = 5) -> np.ndarray:
    """Calendar-aligned tick timestamps (UTC) inside ``[tmin, tmax]``."""
    if count <= 0:
        raise ValueError("count must be > 0")
    if tmax < tmin:
        tmin, tmax = tmax, tmin
    if tmin == tmax:
        return np.asarray([tmin], dtype=np.float64)

    target = (tmax - tmin) / count
    durations = [entry[2] for entry in _TIME_INTERVALS]
    i = bisect.bisect_right(durations, target)
    if i == len(_TIME_INTERVALS):
        return _year_ticks(tmin, tmax, count)
    if i == 0:
        step = max(1.0, linear_tick_step(tmin, tmax, count))
        return _fixed_ticks(tmin, tmax, step)
    if target / durations[i - 1] < durations[i] / target:
        i -= 1
    unit, step, _ = _TIME_INTERVALS[i]
    if unit in _UNIT_MS and not (unit == "day" and step > 1):
        return _fixed_ticks(tmin, tmax, _UNIT_MS[unit] * step)
    if unit == "day":
        return _day_of_month_ticks(tmin, tmax, step)
    if unit == "week":
        return _week_ticks(tmin, tmax)
    if unit == "month":
        return _month_ticks(tmin, tmax, step)
    return _year_ticks(tmin, tmax, count)


class Palette:
    """Metric colours cycled modulo the palette length.

    Entries are colour groups whose first element is the fill colour, bare
    colour strings, or RGB(A) tuples.
    """

    def __init__(self, entries: Sequence[Any], *, fallback: RGBA = DEFAULT_SERIES_COLOR) -> None:
        self._colors = tuple(parse_color(_first_color(entry)) for entry in entries)
        self._fallback = fallback
        self._warned_empty = False

    def __len__(self) -> int:
        return len(self._colors)

    def color(self, index: int) -> RGBA:
        if not self._colors:
            if not self._warned_empty:
                LOGGER.warning("empty colour palette; using fallback colour %s", self._fallback)
                self._warned_empty = True
            return self._fallback
        return self._colors[index % len(self._colors)]


def parse_color(value: Any) -> RGBA:
    if isinstance(value, str):
        raw = value.strip().lstrip("#")
        if len(raw) in (3, 4):
            raw = "".join(ch * 2 for ch in raw)
        if len(raw) not in (6, 8):
            raise ValueError(f"unsupported colour string: {value!r}")
        try:
            parts = [int(raw[i : i + 2], 16) for i in range(0, len(raw), 2)]
        except ValueError as exc:
            raise ValueError(f"unsupported colour string: {value!r}") from exc
        if len(parts) == 3:
            parts.append(255)
        return (parts[0], parts[1], parts[2], parts[3])
    if isinstance(value, Sequence) and len(value) in (3, 4):
        comps = [max(0, min(255, int(c))) for c in value]
        if len(comps) == 3:
            comps.append(255)
        return (comps[0], comps[1], comps[2], comps[3])
    raise ValueError(f"unsupported colour: {value!r}")


def _first_color(entry: Any) -> Any:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, Sequence) and len(entry) in (3, 4) and all(isinstance(c, (int, np.integer)) for c in entry):
        return entry
    if isinstance(entry, Sequence) and len(entry) > 0:
        return entry[0]
    raise ValueError(f"unsupported palette entry: {entry!r}")


def _snap(value: float, step: float) -> float:
    # Normalize floating-point drift so 0.30000000000000004 lands on the step grid.
    return float(np.rint(value / step) * step)


def _fixed_ticks(tmin: float, tmax: float, step_ms: float) -> np.ndarray:
    start = math.ceil(tmin / step_ms) * step_ms
    ticks = np.arange(start, tmax + 0.5 * step_ms, step_ms, dtype=np.float64)
    return ticks[ticks <= tmax]


def _to_datetime(ms: float) -> datetime:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)


def _to_ms(value: datetime) -> float:
    return value.timestamp() * 1000.0


def _day_of_month_ticks(tmin: float, tmax: float, step: int) -> np.ndarray:
    day = _to_datetime(math.ceil(tmin / DAY_MS) * DAY_MS)
    out: list[float] = []
    while _to_ms(day) <= tmax:
        if (day.day - 1) % step == 0:
            out.append(_to_ms(day))
        day += timedelta(days=1)
    return np.asarray(out, dtype=np.float64)


def _week_ticks(tmin: float, tmax: float) -> np.ndarray:
    day = _to_datetime(math.ceil(tmin / DAY_MS) * DAY_MS)
    # Weeks start on Sunday.
    day += timedelta(days=(6 - day.weekday()) % 7)
    out: list[float] = []
    while _to_ms(day) <= tmax:
        out.append(_to_ms(day))
        day += timedelta(days=7)
    return np.asarray(out, dtype=np.float64)


def _month_ticks(tmin: float, tmax: float, step: int) -> np.ndarray:
    start = _to_datetime(tmin)
    year, month = start.year, start.month
    out: list[float] = []
    while True:
        tick = datetime(year, month, 1, tzinfo=timezone.utc)
        ms = _to_ms(tick)
        if ms > tmax:
            break
        if ms >= tmin and (month - 1) % step == 0:
            out.append(ms)
        month += 1
        if month > 12:
            month = 1
            year += 1
    return np.asarray(out, dtype=np.float64)


def _year_ticks(tmin: float, tmax: float, count: int) -> np.ndarray:
    y0 = _to_datetime(tmin).year
    y1 = _to_datetime(tmax).year
    step = max(1, int(round(linear_tick_step(float(y0), float(y1), count)))) if y1 > y0 else 1
    out: list[float] = []
    year = int(math.ceil(y0 / step) * step)
    while year <= y1:
        ms = _to_ms(datetime(year, 1, 1, tzinfo=timezone.utc))
        if tmin <= ms <= tmax:
            out.append(ms)
        year += step
    return np.asarray(out, dtype=np.float64)

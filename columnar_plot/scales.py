from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
import datetime as dt
from decimal import Decimal, InvalidOperation
import math
from typing import Sequence

import numpy as np


_E10 = math.sqrt(50.0)
_E5 = math.sqrt(10.0)
_E2 = math.sqrt(2.0)

DEFAULT_TICK_COUNT = 10

_SECOND = 1.0
_MINUTE = 60.0 * _SECOND
_HOUR = 60.0 * _MINUTE
_DAY = 24.0 * _HOUR
_WEEK = 7.0 * _DAY
_MONTH = 30.0 * _DAY
_YEAR = 365.0 * _DAY

# (unit, step, nominal duration in seconds), ordered by duration.
TIME_TICK_INTERVALS: tuple[tuple[str, int, float], ...] = (
    ("second", 1, _SECOND),
    ("second", 5, 5 * _SECOND),
    ("second", 15, 15 * _SECOND),
    ("second", 30, 30 * _SECOND),
    ("minute", 1, _MINUTE),
    ("minute", 5, 5 * _MINUTE),
    ("minute", 15, 15 * _MINUTE),
    ("minute", 30, 30 * _MINUTE),
    ("hour", 1, _HOUR),
    ("hour", 3, 3 * _HOUR),
    ("hour", 6, 6 * _HOUR),
    ("hour", 12, 12 * _HOUR),
    ("day", 1, _DAY),
    ("day", 2, 2 * _DAY),
    ("week", 1, _WEEK),
    ("month", 1, _MONTH),
    ("month", 3, 3 * _MONTH),
    ("year", 1, _YEAR),
)
_INTERVAL_DURATIONS = [d for _, _, d in TIME_TICK_INTERVALS]


def tick_increment(start: float, stop: float, count: float) -> float:
    """Step between nice linear ticks; negative values encode 1/step."""

    if count <= 0:
        return 0.0
    step = (stop - start) / count
    if step <= 0 or not np.isfinite(step):
        return 0.0
    power = math.floor(math.log10(step))
    error = step / (10.0**power)
    if error >= _E10:
        factor = 10.0
    elif error >= _E5:
        factor = 5.0
    elif error >= _E2:
        factor = 2.0
    else:
        factor = 1.0
    if power >= 0:
        return factor * (10.0**power)
    return -(10.0 ** (-power)) / factor


def linear_ticks(start: float, stop: float, count: float = DEFAULT_TICK_COUNT) -> np.ndarray:
    if count <= 0:
        return np.asarray([], dtype=np.float64)
    if start == stop:
        return np.asarray([start], dtype=np.float64)
    reverse = stop < start
    lo, hi = (stop, start) if reverse else (start, stop)
    inc = tick_increment(lo, hi, count)
    if inc == 0 or not np.isfinite(inc):
        return np.asarray([], dtype=np.float64)
    if inc > 0:
        i0 = math.ceil(lo / inc)
        i1 = math.floor(hi / inc)
        ticks = np.arange(i0, i1 + 1, dtype=np.float64) * inc
    else:
        i0 = math.ceil(lo * -inc)
        i1 = math.floor(hi * -inc)
        ticks = np.arange(i0, i1 + 1, dtype=np.float64) / -inc
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=1e-12)] = 0.0
    return ticks[::-1] if reverse else ticks


@dataclass(frozen=True)
class LinearScale:
    domain: tuple[float, float]
    range: tuple[float, float]
    round_output: bool = False

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            out = (r0 + r1) / 2.0
        else:
            out = r0 + (float(value) - d0) / (d1 - d0) * (r1 - r0)
        return float(round(out)) if self.round_output else out

    def ticks(self, count: int | None = None) -> list[float]:
        return linear_ticks(self.domain[0], self.domain[1], DEFAULT_TICK_COUNT if count is None else count).tolist()


@dataclass(frozen=True)
class TimeScale:
    domain: tuple[dt.datetime, dt.datetime]
    range: tuple[float, float] = (0.0, 1.0)

    def __call__(self, value: dt.datetime) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        span = (d1 - d0).total_seconds()
        if span == 0:
            return (r0 + r1) / 2.0
        return r0 + (value - d0).total_seconds() / span * (r1 - r0)

    def positions(self, values: Sequence[dt.datetime]) -> np.ndarray:
        return np.asarray([self(v) for v in values], dtype=np.float64)

    def ticks(self, count: int | None = None) -> list[dt.datetime]:
        return time_ticks(self.domain[0], self.domain[1], DEFAULT_TICK_COUNT if count is None else count)


def select_time_interval(start: dt.datetime, stop: dt.datetime, count: float) -> tuple[str, int]:
    target = abs((stop - start).total_seconds()) / max(count, 1e-12)
    i = bisect_right(_INTERVAL_DURATIONS, target)
    if i == len(TIME_TICK_INTERVALS):
        years = tick_increment(start.year + _year_fraction(start), stop.year + _year_fraction(stop), count)
        return ("year", max(1, int(round(years))) if years > 0 else 1)
    if i == 0:
        return ("second", 1)
    lower = TIME_TICK_INTERVALS[i - 1]
    upper = TIME_TICK_INTERVALS[i]
    unit, step, _ = lower if target / lower[2] < upper[2] / target else upper
    return (unit, step)


def time_ticks(start: dt.datetime, stop: dt.datetime, count: int = DEFAULT_TICK_COUNT) -> list[dt.datetime]:
    if count <= 0:
        return []
    reverse = stop < start
    lo, hi = (stop, start) if reverse else (start, stop)
    unit, step = select_time_interval(lo, hi, count)
    ticks = time_range(unit, step, lo, hi)
    return ticks[::-1] if reverse else ticks


def time_range(unit: str, step: int, start: dt.datetime, stop: dt.datetime) -> list[dt.datetime]:
    """Aligned boundaries of `unit` every `step`, inclusive of both ends."""

    out: list[dt.datetime] = []
    current = _ceil_to_unit(unit, start)
    while current <= stop:
        if _is_aligned(unit, step, current):
            out.append(current)
        current = _add_unit(unit, current)
    return out


def _year_fraction(value: dt.datetime) -> float:
    start = value.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    end = start.replace(year=start.year + 1)
    return (value - start).total_seconds() / (end - start).total_seconds()


def _floor_to_unit(unit: str, value: dt.datetime) -> dt.datetime:
    if unit == "second":
        return value.replace(microsecond=0)
    if unit == "minute":
        return value.replace(second=0, microsecond=0)
    if unit == "hour":
        return value.replace(minute=0, second=0, microsecond=0)
    day = value.replace(hour=0, minute=0, second=0, microsecond=0)
    if unit == "day":
        return day
    if unit == "week":
        # Weeks start on Sunday.
        return day - dt.timedelta(days=(day.weekday() + 1) % 7)
    if unit == "month":
        return day.replace(day=1)
    if unit == "year":
        return day.replace(month=1, day=1)
    raise ValueError(f"unknown time unit: {unit}")


def _ceil_to_unit(unit: str, value: dt.datetime) -> dt.datetime:
    floored = _floor_to_unit(unit, value)
    return floored if floored >= value else _add_unit(unit, floored)


def _add_unit(unit: str, value: dt.datetime) -> dt.datetime:
    if unit == "second":
        return value + dt.timedelta(seconds=1)
    if unit == "minute":
        return value + dt.timedelta(minutes=1)
    if unit == "hour":
        return value + dt.timedelta(hours=1)
    if unit == "day":
        return value + dt.timedelta(days=1)
    if unit == "week":
        return value + dt.timedelta(weeks=1)
    if unit == "month":
        if value.month == 12:
            return value.replace(year=value.year + 1, month=1)
        return value.replace(month=value.month + 1)
    if unit == "year":
        return value.replace(year=value.year + 1)
    raise ValueError(f"unknown time unit: {unit}")


def _is_aligned(unit: str, step: int, value: dt.datetime) -> bool:
    if step <= 1:
        return True
    if unit == "second":
        return value.second % step == 0
    if unit == "minute":
        return value.minute % step == 0
    if unit == "hour":
        return value.hour % step == 0
    if unit == "day":
        return (value.day - 1) % step == 0
    if unit == "month":
        return (value.month - 1) % step == 0
    if unit == "year":
        return value.year % step == 0
    return True


def format_time_tick(value: dt.datetime) -> str:
    """Multi-scale label: the coarsest unit the tick is not aligned below wins."""

    if value.microsecond:
        return f".{value.microsecond // 1000:03d}"
    if value.second:
        return f":{value.second:02d}"
    if value.minute:
        return f"{value:%I:%M}"
    if value.hour:
        return f"{value:%I %p}"
    if value.day != 1:
        if value.weekday() != 6:
            return f"{value:%a} {value.day:02d}"
        return f"{value:%b} {value.day:02d}"
    if value.month != 1:
        return f"{value:%B}"
    return f"{value:%Y}"


def format_tick(value: float, *, step: float | None = None) -> str:
    """Axis label for `value`; with `step`, precision follows the tick spacing."""

    if not np.isfinite(value):
        return str(value)
    has_step = step is not None and np.isfinite(step) and step > 0
    if has_step and abs(value) <= step * 1e-9:
        value = 0.0
    magnitude = abs(value)
    if magnitude and (magnitude >= 1e6 or magnitude < 1e-6 or (has_step and step < 1e-4)):
        return f"{value:.4e}"
    places = _decimals_from_step(step) if has_step else 6
    try:
        text = format(Decimal(str(value)).quantize(Decimal(1).scaleb(-places)), "f")
    except InvalidOperation:
        text = format(Decimal(str(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_ticks_for_axis(ticks: Sequence[float]) -> list[str]:
    values = np.asarray(ticks, dtype=np.float64)
    if values.size == 0:
        return []
    if values.size == 1:
        return [format_tick(float(values[0]))]
    step = float(abs(values[1] - values[0]))
    return [format_tick(float(v), step=step) for v in values]


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    exponent = int(Decimal(str(step)).normalize().as_tuple().exponent)
    return min(12, max(0, -exponent))

"""Time and calendar primitives: Monday-anchored weeks, minute-of-day offsets, snapping."""

from __future__ import annotations

import enum
from datetime import date, datetime, timedelta
from typing import List, Tuple

import pandas as pd

MINUTES_PER_DAY = 24 * 60
SNAP_STEP = 15
DAYS_PER_WEEK = 7


class Weekday(enum.IntEnum):
    """Day index used everywhere in the engine: 0 = Monday ... 6 = Sunday."""

    MON = 0
    TUE = 1
    WED = 2
    THU = 3
    FRI = 4
    SAT = 5
    SUN = 6

    @property
    def short_name(self) -> str:
        return self.name.title()

    @property
    def full_name(self) -> str:
        return ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"][self]

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        return cls(value.weekday())

    @classmethod
    def from_calendar_weekday(cls, weekday: int) -> "Weekday":
        """Convert a 1 = Sunday ... 7 = Saturday weekday number."""
        return cls((weekday + 5) % 7)

    def to_calendar_weekday(self) -> int:
        return ((self.value + 1) % 7) + 1


def snap(minutes: int, step: int = SNAP_STEP) -> int:
    """Round to the nearest multiple of ``step``; exact ties go to the upper multiple."""
    if step <= 0:
        return minutes
    lower = (minutes // step) * step
    upper = lower + step
    return lower if (minutes - lower) < (upper - minutes) else upper


def clamp(minutes: int, min_value: int, max_value: int) -> int:
    return max(min_value, min(max_value, minutes))


def snap_and_clamp(minutes: int, min_value: int, max_value: int, step: int = SNAP_STEP) -> int:
    return clamp(snap(minutes, step), min_value, max_value)


def _localize(naive: pd.Timestamp, tz: str) -> pd.Timestamp:
    # DST gaps move forward, repeated hours resolve to standard time
    return naive.tz_localize(tz, ambiguous=False, nonexistent="shift_forward")


def to_local(value: date | datetime | pd.Timestamp, tz: str) -> pd.Timestamp:
    """Interpret ``value`` in ``tz``. Naive values are local wall-clock times."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return _localize(ts, tz)
    return ts.tz_convert(tz)


def local_midnight(day: date, tz: str) -> pd.Timestamp:
    return _localize(pd.Timestamp(day), tz)


def week_start(value: date | datetime | pd.Timestamp, tz: str) -> pd.Timestamp:
    """Floor ``value`` to local Monday midnight of its week in ``tz``."""
    local_day = to_local(value, tz).date()
    monday = local_day - timedelta(days=local_day.weekday())
    return local_midnight(monday, tz)


def week_anchor_date(value: date | datetime | pd.Timestamp, tz: str) -> date:
    """Calendar date of the Monday that anchors the week containing ``value``."""
    return week_start(value, tz).date()


def week_bounds(value: date | datetime | pd.Timestamp, tz: str) -> Tuple[pd.Timestamp, pd.Timestamp]:
    start = week_start(value, tz)
    end = local_midnight(start.date() + timedelta(days=DAYS_PER_WEEK), tz)
    return start, end


def week_dates(value: date | datetime | pd.Timestamp, tz: str) -> List[date]:
    anchor = week_anchor_date(value, tz)
    return [anchor + timedelta(days=i) for i in range(DAYS_PER_WEEK)]


def day_date(week_value: date | datetime | pd.Timestamp, day_of_week: int, tz: str) -> date:
    """Calendar date for a day index within the week anchored at ``week_value``."""
    return week_anchor_date(week_value, tz) + timedelta(days=int(day_of_week))


def local_timestamp(
    week_value: date | datetime | pd.Timestamp,
    day_of_week: int,
    minutes_from_midnight: int,
    tz: str,
) -> pd.Timestamp:
    """Absolute timestamp for a (day, minute-of-day) pair; 1440 maps to the next midnight."""
    return timestamp_on(day_date(week_value, day_of_week, tz), minutes_from_midnight, tz)


def timestamp_on(day: date, minutes_from_midnight: int, tz: str) -> pd.Timestamp:
    """Wall-clock minute offset on a calendar date, localized in ``tz``."""
    naive = pd.Timestamp(day) + pd.Timedelta(minutes=int(minutes_from_midnight))
    return _localize(naive, tz)


def minutes_from_midnight(value: date | datetime | pd.Timestamp, tz: str) -> int:
    local = to_local(value, tz)
    return local.hour * 60 + local.minute


def day_index(value: date | datetime | pd.Timestamp, tz: str) -> int:
    return to_local(value, tz).weekday()


def month_bounds(value: date | datetime | pd.Timestamp, tz: str) -> Tuple[date, date]:
    """First day of the month containing the week anchor, and first day of the next month."""
    anchor = week_anchor_date(value, tz)
    first = anchor.replace(day=1)
    if first.month == 12:
        following = first.replace(year=first.year + 1, month=1)
    else:
        following = first.replace(month=first.month + 1)
    return first, following


def to_storage(value: pd.Timestamp | datetime) -> datetime:
    """Convert an aware timestamp to the naive UTC datetime persisted in the database."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        raise ValueError("to_storage expects a timezone-aware timestamp")
    return ts.tz_convert("UTC").tz_localize(None).to_pydatetime()


def from_storage(value: datetime | pd.Timestamp) -> pd.Timestamp:
    """Read a persisted timestamp back as an aware UTC timestamp."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def time_label(minutes: int) -> str:
    safe = clamp(int(minutes), 0, MINUTES_PER_DAY)
    hours, mins = divmod(safe, 60)
    hours %= 24
    suffix = "AM" if hours < 12 else "PM"
    display = hours % 12 or 12
    return f"{display}:{mins:02d} {suffix}"


def day_name(day_of_week: int) -> str:
    return Weekday(clamp(int(day_of_week), 0, 6)).short_name

"""Availability resolution: unavailable dates, overrides and recurring weekly windows."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

import pandas as pd
from sqlalchemy.orm import Session

from shiftplanner.domain.models import AvailabilityOverride, AvailabilityWindow, UnavailableDate
from shiftplanner.domain.repositories import AvailabilityRepository

from .timeplan import day_date, day_index, minutes_from_midnight, week_anchor_date


class AvailabilityStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    PARTIAL = "PARTIAL"
    UNAVAILABLE = "UNAVAILABLE"


@dataclass
class AvailabilityContext:
    """All availability records the resolver may consult."""

    windows: Sequence[AvailabilityWindow] = field(default_factory=list)
    overrides: Sequence[AvailabilityOverride] = field(default_factory=list)
    unavailable_dates: Sequence[UnavailableDate] = field(default_factory=list)


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Strict interval intersection."""
    return max(start_a, start_b) < min(end_a, end_b)


def contains(outer_start: int, outer_end: int, inner_start: int, inner_end: int) -> bool:
    """Inclusive containment of the inner interval."""
    return outer_start <= inner_start and outer_end >= inner_end


def _scoped(records, employee_id: int, shop_id: Optional[str]):
    return [
        r for r in records
        if r.employee_id == employee_id and (shop_id is None or r.shop_id == shop_id)
    ]


def is_available(
    employee_id: int,
    day_of_week: int,
    start_minutes: int,
    end_minutes: int,
    week_start: date | datetime | pd.Timestamp,
    tz: str,
    context: AvailabilityContext,
    shop_id: Optional[str] = None,
) -> bool:
    """
    Decide whether an employee can work an interval on a day of the anchored week.

    Precedence: unavailable date > overlapping unavailable override > containing weekly
    window > no windows that weekday (permissive) > containing available override.

    Args:
        employee_id: Employee to check
        day_of_week: 0 = Monday ... 6 = Sunday
        start_minutes: Interval start, minutes since local midnight
        end_minutes: Interval end, minutes since local midnight
        week_start: Any value inside the week; normalized to its Monday
        tz: IANA time zone of the shop
        context: Availability records
        shop_id: Only records for this shop are considered; None means pre-scoped

    Returns:
        True if the employee is available for the whole interval
    """
    if end_minutes <= start_minutes:
        return False

    target_date = day_date(week_start, day_of_week, tz)

    for blocked in _scoped(context.unavailable_dates, employee_id, shop_id):
        if blocked.date == target_date:
            return False

    day_overrides = [o for o in _scoped(context.overrides, employee_id, shop_id) if o.date == target_date]
    for override in day_overrides:
        if not override.is_available and overlaps(start_minutes, end_minutes, override.start_minutes, override.end_minutes):
            return False

    windows = [w for w in _scoped(context.windows, employee_id, shop_id) if w.day_of_week == day_of_week]
    if any(contains(w.start_minutes, w.end_minutes, start_minutes, end_minutes) for w in windows):
        return True
    if not windows:
        return True

    return any(
        o.is_available and contains(o.start_minutes, o.end_minutes, start_minutes, end_minutes)
        for o in day_overrides
    )


def availability_status(
    employee_id: int,
    at: datetime | pd.Timestamp,
    tz: str,
    context: AvailabilityContext,
    shop_id: Optional[str] = None,
    probe_minutes: int = 15,
) -> AvailabilityStatus:
    """Roster badge for an employee at an instant (a short probe interval starting then)."""
    day = day_index(at, tz)
    minute = minutes_from_midnight(at, tz)
    if is_available(employee_id, day, minute, minute + probe_minutes, at, tz, context, shop_id):
        return AvailabilityStatus.AVAILABLE

    has_window_today = any(w.day_of_week == day for w in _scoped(context.windows, employee_id, shop_id))
    return AvailabilityStatus.PARTIAL if has_window_today else AvailabilityStatus.UNAVAILABLE


def load_availability_context(
    session: Session,
    shop_id: str,
    week_value: date | datetime | pd.Timestamp,
    tz: str,
) -> AvailabilityContext:
    """Load the shop's windows plus the overrides and blocked dates of one week."""
    anchor = week_anchor_date(week_value, tz)
    end = anchor + timedelta(days=7)
    return AvailabilityContext(
        windows=AvailabilityRepository.get_windows(session, shop_id),
        overrides=AvailabilityRepository.get_overrides(session, shop_id, anchor, end),
        unavailable_dates=AvailabilityRepository.get_unavailable_dates(session, shop_id, anchor, end),
    )


"""Publishing boundary: turn draft shifts into persisted PlannedShift rows."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import List, Mapping, Optional, Sequence

import pandas as pd
from sqlalchemy.orm import Session

from shiftplanner.domain.drafts import DraftShift
from shiftplanner.domain.models import Employee, PlannedShift, PlannedShiftStatus
from shiftplanner.domain.repositories import PlannedShiftRepository

from .timeplan import (
    day_date,
    from_storage,
    local_midnight,
    month_bounds,
    timestamp_on,
    to_storage,
    week_bounds,
)

logger = logging.getLogger(__name__)

WeekValue = date | datetime | pd.Timestamp


class PublishError(ValueError):
    """Draft set cannot be published; raised before any persisted row is touched."""


class EmployeeNotFoundError(PublishError):
    def __init__(self, employee_id: int):
        super().__init__(f"Employee {employee_id} is not in the roster.")
        self.employee_id = employee_id


class InvalidShiftError(PublishError):
    def __init__(self, shift: DraftShift):
        super().__init__(
            f"Shift {shift.id} has an invalid time range ({shift.start_minutes} -> {shift.end_minutes})."
        )
        self.shift_id = shift.id


def publishable_shifts(shifts: Sequence[DraftShift], employees_by_id: Mapping[int, Employee]) -> List[DraftShift]:
    """
    Check every draft and return the ones that will be written.

    Open shifts are skipped silently.

    Raises:
        InvalidShiftError: a draft ends at or before its start
        EmployeeNotFoundError: a draft references an employee missing from the roster
    """
    publishable: List[DraftShift] = []
    for shift in shifts:
        if not shift.is_valid_range:
            raise InvalidShiftError(shift)
        if shift.employee_id is None:
            continue
        if shift.employee_id not in employees_by_id:
            raise EmployeeNotFoundError(shift.employee_id)
        publishable.append(shift)
    return publishable


def _record(
    shift: DraftShift,
    shop_id: str,
    day: date,
    tz: str,
    published_at: datetime,
) -> PlannedShift:
    return PlannedShift(
        shop_id=shop_id,
        employee_id=shift.employee_id,
        day_date=day,
        start_time=to_storage(timestamp_on(day, shift.start_minutes, tz)),
        end_time=to_storage(timestamp_on(day, shift.end_minutes, tz)),
        status=PlannedShiftStatus.PUBLISHED,
        role_requirement=shift.role_requirement,
        notes=shift.notes,
        created_at=published_at,
        published_at=published_at,
    )


def _now() -> datetime:
    return to_storage(pd.Timestamp.now(tz="UTC"))


def build_week_records(
    shifts: Sequence[DraftShift],
    shop_id: str,
    week_value: WeekValue,
    tz: str,
    employees_by_id: Mapping[int, Employee],
    published_at: Optional[datetime] = None,
) -> List[PlannedShift]:
    """Transient PlannedShift rows for one week; nothing is added to a session."""
    stamp = published_at or _now()
    return [
        _record(shift, shop_id, day_date(week_value, shift.day_of_week, tz), tz, stamp)
        for shift in publishable_shifts(shifts, employees_by_id)
    ]


def build_month_records(
    shifts: Sequence[DraftShift],
    shop_id: str,
    anchor_week: WeekValue,
    tz: str,
    employees_by_id: Mapping[int, Employee],
    published_at: Optional[datetime] = None,
) -> List[PlannedShift]:
    """Repeat the weekly pattern on every matching weekday of the anchor week's month."""
    stamp = published_at or _now()
    template = publishable_shifts(shifts, employees_by_id)
    first, following = month_bounds(anchor_week, tz)

    records: List[PlannedShift] = []
    cursor = first
    while cursor < following:
        for shift in template:
            if shift.day_of_week == cursor.weekday():
                records.append(_record(shift, shop_id, cursor, tz, stamp))
        cursor += timedelta(days=1)
    return records


def _replace_window(
    session: Session,
    shop_id: str,
    start: datetime,
    end: datetime,
    records: List[PlannedShift],
) -> int:
    deleted = PlannedShiftRepository.delete_replaceable(session, shop_id, start, end)
    PlannedShiftRepository.add_all(session, records)
    session.commit()
    logger.info("Published %d shifts for %s (replaced %d)", len(records), shop_id, deleted)
    return len(records)


def publish_week(
    session: Session,
    shifts: Sequence[DraftShift],
    shop_id: str,
    week_value: WeekValue,
    tz: str,
    employees_by_id: Mapping[int, Employee],
) -> int:
    """
    Replace the shop's non-completed shifts in the week with the drafts.

    Args:
        session: Database session; committed once on success
        shifts: Draft shifts to publish
        shop_id: Shop identifier
        week_value: Any value inside the target week
        tz: IANA time zone of the shop
        employees_by_id: Roster lookup built once by the caller

    Returns:
        Number of rows inserted
    """
    records = build_week_records(shifts, shop_id, week_value, tz, employees_by_id)
    start, end = week_bounds(week_value, tz)
    return _replace_window(session, shop_id, to_storage(start), to_storage(end), records)


def publish_month(
    session: Session,
    shifts: Sequence[DraftShift],
    shop_id: str,
    anchor_week: WeekValue,
    tz: str,
    employees_by_id: Mapping[int, Employee],
) -> int:
    """Month variant of ``publish_week``; completed rows in the month are kept."""
    records = build_month_records(shifts, shop_id, anchor_week, tz, employees_by_id)
    first, following = month_bounds(anchor_week, tz)
    return _replace_window(
        session,
        shop_id,
        to_storage(local_midnight(first, tz)),
        to_storage(local_midnight(following, tz)),
        records,
    )


def load_week_drafts(
    session: Session,
    shop_id: str,
    week_value: WeekValue,
    tz: str,
) -> List[DraftShift]:
    """Read the week's non-completed persisted shifts back as editable drafts."""
    start, end = week_bounds(week_value, tz)
    anchor = start.date()
    drafts: List[DraftShift] = []
    for row in PlannedShiftRepository.get_in_range(session, shop_id, to_storage(start), to_storage(end)):
        if row.status == PlannedShiftStatus.COMPLETED:
            continue
        local_start = from_storage(row.start_time).tz_convert(tz)
        start_minutes = local_start.hour * 60 + local_start.minute
        duration = int((row.end_time - row.start_time).total_seconds() // 60)
        drafts.append(
            DraftShift(
                employee_id=row.employee_id,
                day_of_week=(local_start.date() - anchor).days,
                start_minutes=start_minutes,
                end_minutes=start_minutes + duration,
                role_requirement=row.role_requirement,
                notes=row.notes,
            )
        )
    return drafts


def load_reference_shifts(
    session: Session,
    shop_id: str,
    week_value: WeekValue,
    tz: str,
) -> List[PlannedShift]:
    """
    Persisted shifts a week publish would not overwrite.

    Completed rows inside the week plus any row within one day either side of it;
    used as the existing-shift context for conflict and rest checks.
    """
    start, end = week_bounds(week_value, tz)
    rows = PlannedShiftRepository.get_in_range(
        session,
        shop_id,
        to_storage(start - pd.Timedelta(days=1)),
        to_storage(end + pd.Timedelta(days=1)),
    )
    return [
        row for row in rows
        if row.status == PlannedShiftStatus.COMPLETED or not start <= from_storage(row.start_time) < end
    ]

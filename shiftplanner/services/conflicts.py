"""Double-booking, weekly-hours and rest-window detection over draft and persisted shifts."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from shiftplanner.domain.drafts import DraftShift, ScheduleWarning, WarningKind
from shiftplanner.domain.models import Employee, PlannedShift, PlannedShiftStatus

from .availability import overlaps
from .timeplan import day_name, from_storage, local_timestamp, time_label, week_bounds

WeekValue = date | datetime | pd.Timestamp


def employee_label(employee_id: Optional[int], employees_by_id: Optional[Mapping[int, Employee]]) -> str:
    if employee_id is None:
        return "Open shift"
    employee = (employees_by_id or {}).get(employee_id)
    return employee.name if employee is not None else f"Employee {employee_id}"


def _assigned(shifts: Sequence[DraftShift]) -> List[DraftShift]:
    return [s for s in shifts if not s.is_open and s.is_valid_range]


def detect_overlaps(
    shifts: Sequence[DraftShift],
    employees_by_id: Optional[Mapping[int, Employee]] = None,
) -> List[ScheduleWarning]:
    """
    Flag every pair of draft shifts for the same employee and day whose intervals overlap.

    Args:
        shifts: Draft shifts; open shifts and invalid ranges are ignored
        employees_by_id: Optional roster used for readable messages

    Returns:
        One CONFLICT warning per overlapping pair, anchored on the later shift
    """
    grouped: Dict[tuple, List[DraftShift]] = defaultdict(list)
    for shift in _assigned(shifts):
        grouped[(shift.employee_id, shift.day_of_week)].append(shift)

    warnings: List[ScheduleWarning] = []
    for (employee_id, day), day_shifts in sorted(grouped.items()):
        ordered = sorted(day_shifts, key=lambda s: (s.start_minutes, s.end_minutes, s.id))
        for i, left in enumerate(ordered):
            for right in ordered[i + 1:]:
                if not overlaps(left.start_minutes, left.end_minutes, right.start_minutes, right.end_minutes):
                    continue
                warnings.append(
                    ScheduleWarning.of(
                        WarningKind.CONFLICT,
                        f"Overlapping shifts for {employee_label(employee_id, employees_by_id)} on {day_name(day)} "
                        f"({time_label(left.start_minutes)}-{time_label(left.end_minutes)} and "
                        f"{time_label(right.start_minutes)}-{time_label(right.end_minutes)}).",
                        day_of_week=day,
                        minute=right.start_minutes,
                        employee_id=employee_id,
                        shift_id=right.id,
                    )
                )
    return warnings


def scoped_existing(existing_shifts: Sequence[PlannedShift], shop_id: Optional[str]) -> List[PlannedShift]:
    """Persisted shifts with an employee, limited to one shop when ``shop_id`` is given."""
    return [
        p for p in existing_shifts
        if p.employee_id is not None and (shop_id is None or p.shop_id == shop_id)
    ]


def _absolute(shift: DraftShift, week_value: WeekValue, tz: str):
    return (
        local_timestamp(week_value, shift.day_of_week, shift.start_minutes, tz),
        local_timestamp(week_value, shift.day_of_week, shift.end_minutes, tz),
    )


def detect_published_conflicts(
    shifts: Sequence[DraftShift],
    existing_shifts: Sequence[PlannedShift],
    week_value: WeekValue,
    tz: str,
    employees_by_id: Optional[Mapping[int, Employee]] = None,
    shop_id: Optional[str] = None,
) -> List[ScheduleWarning]:
    """Flag drafts that overlap a persisted shift of the same employee, compared in absolute time."""
    by_employee: Dict[int, List[PlannedShift]] = defaultdict(list)
    for planned in scoped_existing(existing_shifts, shop_id):
        by_employee[planned.employee_id].append(planned)

    warnings: List[ScheduleWarning] = []
    for shift in _assigned(shifts):
        planned_rows = by_employee.get(shift.employee_id)
        if not planned_rows:
            continue
        start, end = _absolute(shift, week_value, tz)
        for planned in planned_rows:
            if max(start, from_storage(planned.start_time)) < min(end, from_storage(planned.end_time)):
                warnings.append(
                    ScheduleWarning.of(
                        WarningKind.CONFLICT,
                        f"{employee_label(shift.employee_id, employees_by_id)} already has a planned shift "
                        f"overlapping {day_name(shift.day_of_week)} {time_label(shift.start_minutes)}"
                        f"-{time_label(shift.end_minutes)}.",
                        day_of_week=shift.day_of_week,
                        minute=shift.start_minutes,
                        employee_id=shift.employee_id,
                        shift_id=shift.id,
                    )
                )
                break
    return warnings


def existing_minutes_by_employee(
    existing_shifts: Sequence[PlannedShift],
    week_value: WeekValue,
    tz: str,
    shop_id: Optional[str] = None,
) -> Dict[int, int]:
    """Minutes of non-completed persisted shifts that start inside the week."""
    start, end = week_bounds(week_value, tz)
    totals: Dict[int, int] = defaultdict(int)
    for planned in scoped_existing(existing_shifts, shop_id):
        if planned.status == PlannedShiftStatus.COMPLETED:
            continue
        planned_start = from_storage(planned.start_time)
        if not start <= planned_start < end:
            continue
        minutes = int((from_storage(planned.end_time) - planned_start).total_seconds() // 60)
        totals[planned.employee_id] += max(0, minutes)
    return dict(totals)


def overtime_warnings(
    shifts: Sequence[DraftShift],
    employees_by_id: Optional[Mapping[int, Employee]] = None,
    max_hours: float = 40,
    baseline_minutes: Optional[Mapping[int, int]] = None,
) -> List[ScheduleWarning]:
    """
    Flag employees whose weekly minutes exceed the cap.

    Without ``baseline_minutes`` this is the quick interactive check over drafts only;
    the full validator passes the minutes of already-persisted shifts of the week.
    """
    totals: Dict[int, int] = defaultdict(int)
    for employee_id, minutes in (baseline_minutes or {}).items():
        totals[employee_id] += minutes
    for shift in shifts:
        if shift.employee_id is not None:
            totals[shift.employee_id] += shift.duration_minutes

    cap = max_hours * 60
    warnings: List[ScheduleWarning] = []
    for employee_id in sorted(totals):
        minutes = totals[employee_id]
        if minutes <= cap:
            continue
        warnings.append(
            ScheduleWarning.of(
                WarningKind.OVERTIME,
                f"{employee_label(employee_id, employees_by_id)} exceeds {max_hours:g}h/week ({minutes / 60:.1f}h).",
                employee_id=employee_id,
            )
        )
    return warnings


@dataclass
class _Interval:
    start: pd.Timestamp
    end: pd.Timestamp
    shift: Optional[DraftShift] = None


def rest_violations(
    shifts: Sequence[DraftShift],
    existing_shifts: Sequence[PlannedShift],
    week_value: WeekValue,
    tz: str,
    min_rest_hours: float,
    employees_by_id: Optional[Mapping[int, Employee]] = None,
    shop_id: Optional[str] = None,
) -> List[ScheduleWarning]:
    """
    Flag consecutive shifts of one employee separated by less than ``min_rest_hours``.

    Drafts and persisted shifts are merged and sorted by absolute start; a pair is
    reported only when at least one side is a draft. Overlapping pairs count as zero rest.
    """
    if min_rest_hours <= 0:
        return []

    intervals: Dict[int, List[_Interval]] = defaultdict(list)
    for shift in _assigned(shifts):
        start, end = _absolute(shift, week_value, tz)
        intervals[shift.employee_id].append(_Interval(start, end, shift))
    for planned in scoped_existing(existing_shifts, shop_id):
        if planned.employee_id in intervals:
            intervals[planned.employee_id].append(
                _Interval(from_storage(planned.start_time), from_storage(planned.end_time))
            )

    warnings: List[ScheduleWarning] = []
    for employee_id in sorted(intervals):
        ordered = sorted(intervals[employee_id], key=lambda i: (i.start, i.end))
        for previous, current in zip(ordered, ordered[1:]):
            if previous.shift is None and current.shift is None:
                continue
            rest_hours = (current.start - previous.end).total_seconds() / 3600.0
            if rest_hours >= min_rest_hours:
                continue
            anchor = current.shift or previous.shift
            warnings.append(
                ScheduleWarning.of(
                    WarningKind.REST_VIOLATION,
                    f"{employee_label(employee_id, employees_by_id)} has only {max(0.0, rest_hours):.1f}h rest "
                    f"between shifts (minimum {min_rest_hours:g}h).",
                    day_of_week=anchor.day_of_week,
                    minute=anchor.start_minutes,
                    employee_id=employee_id,
                    shift_id=anchor.id,
                )
            )
    return warnings

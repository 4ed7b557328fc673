"""
Validation aggregator.

Composes per-shift checks, double-booking, role-aware coverage, rest windows and weekly
hours into one ordered warning list. The generator and the interactive board both call
``validate_schedule`` so a generated option and an edited draft are judged by the same rules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Mapping, Optional, Sequence

import pandas as pd

from shiftplanner.config import SchedulingConstraints
from shiftplanner.domain.drafts import DraftShift, ScheduleWarning, Severity, WarningKind
from shiftplanner.domain.models import CoverageRequirement, Employee, EmployeeRole, PlannedShift

from .availability import AvailabilityContext, is_available
from .conflicts import (
    detect_overlaps,
    detect_published_conflicts,
    employee_label,
    existing_minutes_by_employee,
    overtime_warnings,
    rest_violations,
)
from .coverage import scope_requirements
from .timeplan import day_name, time_label

logger = logging.getLogger(__name__)


@dataclass
class ValidationInput:
    """Everything needed to judge one week of draft shifts for one shop."""

    shop_id: str
    week_start: date | datetime | pd.Timestamp
    tz: str
    shifts: Sequence[DraftShift]
    coverage: Sequence[CoverageRequirement] = field(default_factory=list)
    employees_by_id: Mapping[int, Employee] = field(default_factory=dict)
    availability: AvailabilityContext = field(default_factory=AvailabilityContext)
    existing_shifts: Sequence[PlannedShift] = field(default_factory=list)
    constraints: SchedulingConstraints = field(default_factory=SchedulingConstraints)


def _shift_span(shift: DraftShift) -> str:
    return f"{day_name(shift.day_of_week)} {time_label(shift.start_minutes)}-{time_label(shift.end_minutes)}"


def validate_individual_shifts(data: ValidationInput) -> List[ScheduleWarning]:
    warnings: List[ScheduleWarning] = []
    max_minutes = data.constraints.max_shift_length_hours * 60

    for shift in data.shifts:
        if not shift.is_valid_range:
            warnings.append(
                ScheduleWarning.of(
                    WarningKind.INVALID_SHIFT,
                    f"Shift on {day_name(shift.day_of_week)} has an invalid time range.",
                    severity=Severity.CRITICAL,
                    day_of_week=shift.day_of_week,
                    minute=shift.start_minutes,
                    employee_id=shift.employee_id,
                    shift_id=shift.id,
                )
            )
            continue

        if shift.is_open:
            warnings.append(
                ScheduleWarning.of(
                    WarningKind.UNASSIGNED,
                    f"Shift on {_shift_span(shift)} has no employee assigned.",
                    day_of_week=shift.day_of_week,
                    minute=shift.start_minutes,
                    shift_id=shift.id,
                )
            )
            continue

        available = is_available(
            shift.employee_id,
            shift.day_of_week,
            shift.start_minutes,
            shift.end_minutes,
            data.week_start,
            data.tz,
            data.availability,
            shop_id=data.shop_id,
        )
        if not available:
            warnings.append(
                ScheduleWarning.of(
                    WarningKind.AVAILABILITY,
                    f"{employee_label(shift.employee_id, data.employees_by_id)} is outside availability "
                    f"on {_shift_span(shift)}.",
                    day_of_week=shift.day_of_week,
                    minute=shift.start_minutes,
                    employee_id=shift.employee_id,
                    shift_id=shift.id,
                )
            )

        if shift.duration_minutes > max_minutes:
            warnings.append(
                ScheduleWarning.of(
                    WarningKind.INVALID_SHIFT,
                    f"Shift on {_shift_span(shift)} exceeds max length "
                    f"({data.constraints.max_shift_length_hours:g}h).",
                    severity=Severity.WARNING,
                    day_of_week=shift.day_of_week,
                    minute=shift.start_minutes,
                    employee_id=shift.employee_id,
                    shift_id=shift.id,
                )
            )

    return warnings


def role_matches(
    requirement_role: Optional[EmployeeRole],
    shift: DraftShift,
    employees_by_id: Mapping[int, Employee],
) -> bool:
    if requirement_role is None:
        return True
    if shift.is_open:
        return False
    employee = employees_by_id.get(shift.employee_id)
    return employee is not None and employee.role == requirement_role


def covering_count(
    requirement: CoverageRequirement,
    shifts: Sequence[DraftShift],
    employees_by_id: Mapping[int, Employee],
) -> int:
    """Assigned shifts that span the whole requirement window with a matching role."""
    return sum(
        1
        for shift in shifts
        if shift.day_of_week == requirement.day_of_week
        and not shift.is_open
        and shift.start_minutes <= requirement.start_minutes
        and shift.end_minutes >= requirement.end_minutes
        and role_matches(requirement.role_requirement, shift, employees_by_id)
    )


def validate_coverage(data: ValidationInput) -> List[ScheduleWarning]:
    warnings: List[ScheduleWarning] = []
    for requirement in scope_requirements(data.coverage, data.shop_id, data.week_start, data.tz):
        missing = requirement.headcount - covering_count(requirement, data.shifts, data.employees_by_id)
        if missing <= 0:
            continue
        role = f" {requirement.role_requirement.label}" if requirement.role_requirement else ""
        warnings.append(
            ScheduleWarning.of(
                WarningKind.UNCOVERED,
                f"Uncovered slots: {missing}{role} needed on {day_name(requirement.day_of_week)} "
                f"{time_label(requirement.start_minutes)}-{time_label(requirement.end_minutes)}.",
                day_of_week=requirement.day_of_week,
                minute=requirement.start_minutes,
            )
        )
    return warnings


def validate_schedule(data: ValidationInput) -> List[ScheduleWarning]:
    """
    Run every check and return warnings in a fixed order.

    Order: per-shift checks, conflicts (draft vs draft, then draft vs persisted),
    uncovered requirements, rest windows, weekly overtime.

    Args:
        data: Shifts plus the roster, coverage, availability and persisted context

    Returns:
        List of ScheduleWarning; empty when the draft is clean
    """
    constraints = data.constraints
    warnings: List[ScheduleWarning] = []

    warnings.extend(validate_individual_shifts(data))
    warnings.extend(detect_overlaps(data.shifts, data.employees_by_id))
    warnings.extend(
        detect_published_conflicts(
            data.shifts, data.existing_shifts, data.week_start, data.tz, data.employees_by_id, shop_id=data.shop_id
        )
    )
    warnings.extend(validate_coverage(data))
    warnings.extend(
        rest_violations(
            data.shifts,
            data.existing_shifts,
            data.week_start,
            data.tz,
            constraints.min_rest_hours_between_shifts,
            data.employees_by_id,
            shop_id=data.shop_id,
        )
    )
    warnings.extend(
        overtime_warnings(
            data.shifts,
            data.employees_by_id,
            max_hours=constraints.max_hours_per_employee_per_week,
            baseline_minutes=existing_minutes_by_employee(
                data.existing_shifts, data.week_start, data.tz, shop_id=data.shop_id
            ),
        )
    )

    logger.debug("Validated %d shifts: %d warnings", len(data.shifts), len(warnings))
    return warnings


def sort_warnings(warnings: Sequence[ScheduleWarning]) -> List[ScheduleWarning]:
    """Order for the UI feed: most severe first, then by message."""
    return sorted(warnings, key=lambda w: (-int(w.severity), w.message))


def has_critical(warnings: Sequence[ScheduleWarning]) -> bool:
    return any(w.severity == Severity.CRITICAL for w in warnings)

"""Linear scoring of candidate schedules for ranking."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, Optional, Sequence

from shiftplanner.domain.drafts import CoverageEvaluation, DraftShift, ScheduleWarning, Severity

BASE_SCORE = 1000
SEVERITY_PENALTY: Dict[Severity, int] = {
    Severity.CRITICAL: 400,
    Severity.WARNING: 60,
    Severity.INFO: 10,
}
UNCOVERED_BUCKET_PENALTY = 4
HOURS_SPREAD_PENALTY = 15
OVER_COVERED_BUCKET_PENALTY = 2
MAX_FAIRNESS_PENALTY = 150
SIMPLICITY_BONUS = 120
SIMPLICITY_PER_SHIFT = 4


def warning_penalty(warnings: Iterable[ScheduleWarning]) -> int:
    return sum(SEVERITY_PENALTY[w.severity] for w in warnings)


def hours_by_employee(
    shifts: Sequence[DraftShift],
    employee_ids: Optional[Iterable[int]] = None,
) -> Dict[int, float]:
    """Assigned hours per employee; ``employee_ids`` adds zero-hour entries for the roster."""
    hours: Dict[int, float] = defaultdict(float)
    for employee_id in employee_ids or ():
        hours[employee_id] += 0.0
    for shift in shifts:
        if not shift.is_open:
            hours[shift.employee_id] += shift.duration_minutes / 60.0
    return dict(hours)


def fairness_penalty(
    shifts: Sequence[DraftShift],
    evaluation: CoverageEvaluation,
    employee_ids: Optional[Iterable[int]] = None,
    fairness_weight: float = 1.0,
) -> int:
    hours = hours_by_employee(shifts, employee_ids)
    spread = (max(hours.values()) - min(hours.values())) if hours else 0.0
    raw = HOURS_SPREAD_PENALTY * fairness_weight * spread
    raw += OVER_COVERED_BUCKET_PENALTY * evaluation.over_covered_bucket_count
    return int(round(min(MAX_FAIRNESS_PENALTY, raw)))


def simplicity_bonus(shift_count: int) -> int:
    return max(0, SIMPLICITY_BONUS - SIMPLICITY_PER_SHIFT * shift_count)


def score_option(
    shifts: Sequence[DraftShift],
    warnings: Sequence[ScheduleWarning],
    evaluation: CoverageEvaluation,
    employee_ids: Optional[Iterable[int]] = None,
    fairness_weight: float = 1.0,
) -> int:
    """
    Score a schedule; higher is better.

    A single critical warning costs more than the largest possible fairness penalty
    plus simplicity bonus, so an invalid schedule never outranks a clean one.

    Args:
        shifts: Draft shifts of the candidate
        warnings: Output of validate_schedule for those shifts
        evaluation: Coverage evaluation of those shifts
        employee_ids: Roster ids to include in the hours spread (zero-hour employees count)
        fairness_weight: Scales the hours-spread term

    Returns:
        Non-negative integer score
    """
    score = (
        BASE_SCORE
        - warning_penalty(warnings)
        - UNCOVERED_BUCKET_PENALTY * evaluation.uncovered_bucket_count
        - fairness_penalty(shifts, evaluation, employee_ids, fairness_weight)
        + simplicity_bonus(len(shifts))
    )
    return max(0, score)

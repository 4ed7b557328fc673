"""Merge touching same-employee shifts produced by slot-by-slot generation."""

from __future__ import annotations

from typing import List, Sequence

from shiftplanner.domain.drafts import DraftShift


def _sort_key(shift: DraftShift):
    owner = (shift.employee_id is None, shift.employee_id or 0)
    return (shift.day_of_week, owner, shift.start_minutes, shift.end_minutes, shift.id)


def can_merge(left: DraftShift, right: DraftShift) -> bool:
    return (
        left.employee_id == right.employee_id
        and left.day_of_week == right.day_of_week
        and left.role_requirement == right.role_requirement
        and left.end_minutes == right.start_minutes
    )


def condense_shifts(shifts: Sequence[DraftShift]) -> List[DraftShift]:
    """
    Merge shifts of the same employee, day and role whose end touches the next start.

    The merged shift keeps the identity and notes of the earlier piece. Total minutes
    are unchanged; the original split cannot be recovered.
    """
    condensed: List[DraftShift] = []
    for shift in sorted(shifts, key=_sort_key):
        if condensed and can_merge(condensed[-1], shift):
            condensed[-1] = condensed[-1].with_changes(end_minutes=shift.end_minutes)
        else:
            condensed.append(shift)
    return condensed

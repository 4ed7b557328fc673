"""
Interactive schedule board: a mutable draft list edited by gestures, with bounded undo.

Drag and resize gestures write to a preview overlay keyed by shift id and only touch the
committed list when the gesture ends. Every committed mutation is followed by a full
``recalculate``; draft sets are small enough that incremental updates are not worth it.
"""

from __future__ import annotations

import enum
import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence

import pandas as pd
from sqlalchemy.orm import Session

from shiftplanner.config import BoardSettings, SchedulingConstraints
from shiftplanner.domain.drafts import (
    CoverageEvaluation,
    DraftShift,
    ScheduleOption,
    ScheduleWarning,
    Severity,
)
from shiftplanner.domain.models import CoverageRequirement, Employee, EmployeeRole, PlannedShift
from shiftplanner.engine import GenerationInput, Orchestrator
from shiftplanner.services.availability import AvailabilityContext, AvailabilityStatus, availability_status
from shiftplanner.services.coverage import coverage_warnings, evaluate_coverage, scope_requirements
from shiftplanner.services.publishing import publish_week
from shiftplanner.services.timeplan import clamp, snap, snap_and_clamp, week_anchor_date
from shiftplanner.services.validation import ValidationInput, sort_warnings, validate_schedule

logger = logging.getLogger(__name__)


@dataclass
class BoardContext:
    """Read-only inputs the board validates against. Shop and time zone are always explicit."""

    shop_id: str
    week_start: date | datetime | pd.Timestamp
    tz: str
    employees: Sequence[Employee] = field(default_factory=list)
    coverage: Sequence[CoverageRequirement] = field(default_factory=list)
    availability: AvailabilityContext = field(default_factory=AvailabilityContext)
    existing_shifts: Sequence[PlannedShift] = field(default_factory=list)
    constraints: SchedulingConstraints = field(default_factory=SchedulingConstraints)

    @property
    def employees_by_id(self) -> Dict[int, Employee]:
        return {emp.employee_id: emp for emp in self.employees}


@dataclass
class BoardFeedback:
    warnings: List[ScheduleWarning]
    evaluation: CoverageEvaluation
    gap_markers: List[ScheduleWarning]

    @classmethod
    def empty(cls) -> "BoardFeedback":
        return cls(warnings=[], evaluation=CoverageEvaluation.empty(), gap_markers=[])


def recalculate(
    context: BoardContext,
    shifts: Sequence[DraftShift],
    settings: BoardSettings,
) -> BoardFeedback:
    """
    Re-validate a draft list and rebuild the heat map.

    Args:
        context: Roster, coverage and persisted context
        shifts: Committed draft shifts
        settings: Visible window and snap step for the heat map

    Returns:
        BoardFeedback with the sorted warning feed, coverage buckets and one gap marker per day
    """
    warnings = validate_schedule(
        ValidationInput(
            shop_id=context.shop_id,
            week_start=context.week_start,
            tz=context.tz,
            shifts=shifts,
            coverage=context.coverage,
            employees_by_id=context.employees_by_id,
            availability=context.availability,
            existing_shifts=context.existing_shifts,
            constraints=context.constraints,
        )
    )
    coverage = scope_requirements(context.coverage, context.shop_id, context.week_start, context.tz)
    evaluation = evaluate_coverage(
        coverage,
        shifts,
        settings.visible_start_minutes,
        settings.visible_end_minutes,
        settings.snap_step_minutes,
    )
    return BoardFeedback(
        warnings=sort_warnings(warnings),
        evaluation=evaluation,
        gap_markers=coverage_warnings(evaluation),
    )


class InteractionMode(enum.Enum):
    MOVE = "move"
    RESIZE_START = "resize_start"
    RESIZE_END = "resize_end"


@dataclass(frozen=True)
class Interaction:
    mode: InteractionMode
    baseline: DraftShift


def _round(value: float) -> int:
    # half away from zero, like a UI rounding a drag offset
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


class ScheduleBoard:
    """
    Mutable draft schedule for one shop and week.

    Committed shifts live in ``draft_shifts``; live gestures live in ``preview``.
    Only this class mutates either.
    """

    def __init__(self, context: BoardContext, settings: Optional[BoardSettings] = None):
        self.context = replace(context, week_start=week_anchor_date(context.week_start, context.tz))
        self.settings = settings or BoardSettings()
        self.draft_shifts: List[DraftShift] = []
        self.original_shifts: List[DraftShift] = []
        self.options: List[ScheduleOption] = []
        self.selected_option: Optional[ScheduleOption] = None
        self.selected_shift_id: Optional[str] = None
        self.preview: Dict[str, DraftShift] = {}
        self._interactions: Dict[str, Interaction] = {}
        self._undo_stack: List[List[DraftShift]] = []
        self._copied: Optional[DraftShift] = None
        self.feedback = BoardFeedback.empty()
        self._recalculate()

    @property
    def week_start(self) -> date:
        return self.context.week_start

    @property
    def warnings(self) -> List[ScheduleWarning]:
        return self.feedback.warnings

    @property
    def evaluation(self) -> CoverageEvaluation:
        return self.feedback.evaluation

    @property
    def selected_shift(self) -> Optional[DraftShift]:
        return self._find(self.selected_shift_id)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def undo_depth(self) -> int:
        return len(self._undo_stack)

    @property
    def can_paste(self) -> bool:
        return self._copied is not None

    @property
    def is_interacting(self) -> bool:
        return bool(self._interactions)

    @property
    def has_critical_warnings(self) -> bool:
        return any(w.severity == Severity.CRITICAL for w in self.feedback.warnings)

    def displayed_shifts(self) -> List[DraftShift]:
        """Committed shifts with any live gesture preview laid over them."""
        return [self.preview.get(shift.id, shift) for shift in self.draft_shifts]

    def warnings_by_shift(self) -> Dict[str, List[ScheduleWarning]]:
        grouped: Dict[str, List[ScheduleWarning]] = defaultdict(list)
        for warning in self.feedback.warnings:
            if warning.shift_id is not None:
                grouped[warning.shift_id].append(warning)
        return dict(grouped)

    def scheduled_minutes_by_employee(self) -> Dict[int, int]:
        totals: Dict[int, int] = defaultdict(int)
        for shift in self.draft_shifts:
            if not shift.is_open:
                totals[shift.employee_id] += shift.duration_minutes
        return dict(totals)

    def filtered_employees(
        self,
        search: str = "",
        role: Optional[EmployeeRole] = None,
        only_available_at: Optional[datetime | pd.Timestamp] = None,
    ) -> List[Employee]:
        """Active roster for the side panel, ordered by role then name."""
        needle = search.strip().casefold()
        result = []
        for employee in self.context.employees:
            if not employee.is_active:
                continue
            if role is not None and employee.role != role:
                continue
            if needle and needle not in employee.name.casefold():
                continue
            if only_available_at is not None:
                status = availability_status(
                    employee.employee_id,
                    only_available_at,
                    self.context.tz,
                    self.context.availability,
                    shop_id=self.context.shop_id,
                )
                if status != AvailabilityStatus.AVAILABLE:
                    continue
            result.append(employee)
        return sorted(result, key=lambda e: (e.role.sort_order, e.name.casefold()))

    def _reset_editing_state(self) -> None:
        self.preview.clear()
        self._interactions.clear()
        self._undo_stack.clear()
        self.selected_shift_id = None

    def apply_option(self, option: ScheduleOption) -> None:
        """Seed the draft from a generated option and remember it for restore."""
        self._reset_editing_state()
        self.selected_option = option
        self.original_shifts = list(option.shifts)
        self.draft_shifts = list(option.shifts)
        self._recalculate()

    def replace_drafts(self, shifts: Sequence[DraftShift], keep_as_original: bool = False) -> None:
        self._reset_editing_state()
        self.draft_shifts = [self.sanitize(shift) for shift in shifts]
        if keep_as_original:
            self.original_shifts = list(self.draft_shifts)
            self.selected_option = None
        self._recalculate()

    def restore_original(self) -> bool:
        if not self.original_shifts:
            return False
        self._reset_editing_state()
        self.draft_shifts = list(self.original_shifts)
        self._recalculate()
        return True

    def generate_options(self, orchestrator: Optional[Orchestrator] = None) -> List[ScheduleOption]:
        """Run the generator over the board's context and visible window; drafts are untouched."""
        orchestrator = orchestrator or Orchestrator()
        self.options = orchestrator.generate(
            GenerationInput(
                shop_id=self.context.shop_id,
                week_start=self.context.week_start,
                tz=self.context.tz,
                coverage=self.context.coverage,
                employees=self.context.employees,
                availability=self.context.availability,
                existing_shifts=self.context.existing_shifts,
                constraints=self.context.constraints,
                visible_start_minutes=self.settings.visible_start_minutes,
                visible_end_minutes=self.settings.visible_end_minutes,
            )
        )
        return self.options

    def previous_week(self) -> None:
        self._move_week(-7)

    def next_week(self) -> None:
        self._move_week(7)

    def _move_week(self, days: int) -> None:
        self.context = replace(
            self.context,
            week_start=week_anchor_date(self.context.week_start + timedelta(days=days), self.context.tz),
        )
        self._recalculate()

    def publish(self, session: Session) -> int:
        """
        Publish the committed drafts for the board's week, then discard them.

        Raises:
            PublishError: validation failed; the board and the database are unchanged
        """
        count = publish_week(
            session,
            self.draft_shifts,
            self.context.shop_id,
            self.context.week_start,
            self.context.tz,
            self.context.employees_by_id,
        )
        self._reset_editing_state()
        self.draft_shifts = []
        self._recalculate()
        return count

    def select(self, shift_id: Optional[str]) -> None:
        self.selected_shift_id = shift_id

    def add_shift(
        self,
        employee_id: Optional[int],
        day_of_week: int,
        start_minutes: int,
        duration_minutes: Optional[int] = None,
    ) -> DraftShift:
        s = self.settings
        duration = s.default_shift_minutes if duration_minutes is None else duration_minutes
        start = snap_and_clamp(
            start_minutes,
            s.visible_start_minutes,
            max(s.visible_start_minutes + s.minimum_shift_minutes, s.visible_end_minutes - s.minimum_shift_minutes),
            s.snap_step_minutes,
        )
        end = snap_and_clamp(start + duration, start + s.minimum_shift_minutes, s.visible_end_minutes,
                             s.snap_step_minutes)
        shift = DraftShift(
            employee_id=employee_id,
            day_of_week=clamp(day_of_week, 0, 6),
            start_minutes=start,
            end_minutes=max(start + s.minimum_shift_minutes, end),
        )
        self._record_undo()
        self.draft_shifts.append(shift)
        self.selected_shift_id = shift.id
        self._recalculate()
        return shift

    def update_shift(self, updated: DraftShift) -> bool:
        index = self._index(updated.id)
        if index is None:
            return False
        sanitized = self.sanitize(updated)
        if self.draft_shifts[index] == sanitized:
            return False
        self._record_undo()
        self.draft_shifts[index] = sanitized
        self.selected_shift_id = updated.id
        self._recalculate()
        return True

    def delete_shift(self, shift_id: str) -> bool:
        self.preview.pop(shift_id, None)
        self._interactions.pop(shift_id, None)
        index = self._index(shift_id)
        if index is None:
            return False
        self._record_undo()
        del self.draft_shifts[index]
        if self.selected_shift_id == shift_id:
            self.selected_shift_id = None
        self._recalculate()
        return True

    def reassign_shift(self, shift_id: str, employee_id: Optional[int]) -> bool:
        """Change only the employee, e.g. after dropping a roster entry onto a shift."""
        index = self._index(shift_id)
        if index is None or self.draft_shifts[index].employee_id == employee_id:
            return False
        self._record_undo()
        self.draft_shifts[index] = self.draft_shifts[index].with_changes(employee_id=employee_id)
        self.selected_shift_id = shift_id
        self._recalculate()
        return True

    def copy_selection(self) -> bool:
        selected = self.selected_shift
        if selected is None:
            return False
        self._copied = selected
        return True

    def cut_selection(self) -> bool:
        selected = self.selected_shift
        if selected is None:
            return False
        self._copied = selected
        return self.delete_shift(selected.id)

    def paste_copied_shift(self) -> Optional[DraftShift]:
        """Paste the template one snap step after the selection (or the template itself)."""
        template = self._copied
        if template is None:
            return None
        s = self.settings
        anchor = self.selected_shift or template
        duration = max(s.minimum_shift_minutes, template.duration_minutes)
        start = snap_and_clamp(
            anchor.start_minutes + s.snap_step_minutes,
            s.visible_start_minutes,
            max(s.visible_start_minutes, s.visible_end_minutes - duration),
            s.snap_step_minutes,
        )
        pasted = DraftShift(
            employee_id=template.employee_id,
            day_of_week=anchor.day_of_week,
            start_minutes=start,
            end_minutes=min(s.visible_end_minutes, start + duration),
            role_requirement=template.role_requirement,
            notes=template.notes,
        )
        self._record_undo()
        self.draft_shifts.append(pasted)
        self.selected_shift_id = pasted.id
        self._recalculate()
        return pasted

    def undo_last_change(self) -> bool:
        if not self._undo_stack:
            return False
        self.preview.clear()
        self._interactions.clear()
        self.draft_shifts = self._undo_stack.pop()
        if self.selected_shift_id is not None and self._index(self.selected_shift_id) is None:
            self.selected_shift_id = None
        self._recalculate()
        return True

    def begin_drag(self, shift_id: str) -> None:
        self.selected_shift_id = shift_id
        self._begin_interaction(shift_id, InteractionMode.MOVE)

    def drag_shift(self, shift_id: str, dx: float, dy: float) -> None:
        """
        Preview a move by a pointer translation measured from the gesture start.

        Args:
            shift_id: Shift being dragged
            dx: Horizontal translation in pixels; whole day columns change the day
            dy: Vertical translation in pixels; converted to snapped minutes
        """
        interaction = self._interaction(shift_id, InteractionMode.MOVE)
        if interaction is None:
            return
        s = self.settings
        base = interaction.baseline

        delta_minutes = self._delta_minutes(dy)
        raw_days = dx / max(100.0, s.day_column_width)
        delta_days = 0 if abs(raw_days) < s.day_change_threshold else _round(raw_days)

        duration = max(s.minimum_shift_minutes, base.duration_minutes)
        start = snap_and_clamp(
            base.start_minutes + delta_minutes,
            s.visible_start_minutes,
            max(s.visible_start_minutes, s.visible_end_minutes - duration),
            s.snap_step_minutes,
        )
        self._set_preview(
            base.with_changes(
                day_of_week=clamp(base.day_of_week + delta_days, 0, 6),
                start_minutes=start,
                end_minutes=min(s.visible_end_minutes, start + duration),
            )
        )

    def end_drag(self, shift_id: str) -> bool:
        return self._commit_interaction(shift_id)

    def begin_resize(self, shift_id: str, edge: str = "end") -> None:
        mode = InteractionMode.RESIZE_START if edge == "start" else InteractionMode.RESIZE_END
        self.selected_shift_id = shift_id
        self._begin_interaction(shift_id, mode)

    def resize_shift_start(self, shift_id: str, dy: float) -> None:
        interaction = self._interaction(shift_id, InteractionMode.RESIZE_START)
        if interaction is None:
            return
        s = self.settings
        base = interaction.baseline
        start = snap_and_clamp(
            base.start_minutes + self._delta_minutes(dy),
            s.visible_start_minutes,
            base.end_minutes - s.minimum_shift_minutes,
            s.snap_step_minutes,
        )
        self._set_preview(base.with_changes(start_minutes=start))

    def resize_shift_end(self, shift_id: str, dy: float) -> None:
        interaction = self._interaction(shift_id, InteractionMode.RESIZE_END)
        if interaction is None:
            return
        s = self.settings
        base = interaction.baseline
        end = snap_and_clamp(
            base.end_minutes + self._delta_minutes(dy),
            base.start_minutes + s.minimum_shift_minutes,
            s.visible_end_minutes,
            s.snap_step_minutes,
        )
        self._set_preview(base.with_changes(end_minutes=end))

    def end_resize(self, shift_id: str) -> bool:
        return self._commit_interaction(shift_id)

    def cancel_interaction(self, shift_id: str) -> None:
        """Drop a gesture without touching the committed list."""
        self._interactions.pop(shift_id, None)
        self.preview.pop(shift_id, None)

    def sanitize(self, shift: DraftShift) -> DraftShift:
        """Clamp the day, snap both edges into the visible window and keep the minimum duration."""
        s = self.settings
        start = snap_and_clamp(
            shift.start_minutes,
            s.visible_start_minutes,
            s.visible_end_minutes - s.minimum_shift_minutes,
            s.snap_step_minutes,
        )
        end = snap_and_clamp(
            shift.end_minutes,
            start + s.minimum_shift_minutes,
            s.visible_end_minutes,
            s.snap_step_minutes,
        )
        return shift.with_changes(
            day_of_week=clamp(shift.day_of_week, 0, 6),
            start_minutes=start,
            end_minutes=max(start + s.minimum_shift_minutes, end),
        )

    def _delta_minutes(self, dy: float) -> int:
        s = self.settings
        return snap(_round(dy / max(0.5, s.pixels_per_minute)), s.snap_step_minutes)

    def _find(self, shift_id: Optional[str]) -> Optional[DraftShift]:
        if shift_id is None:
            return None
        return next((shift for shift in self.draft_shifts if shift.id == shift_id), None)

    def _index(self, shift_id: str) -> Optional[int]:
        for index, shift in enumerate(self.draft_shifts):
            if shift.id == shift_id:
                return index
        return None

    def _begin_interaction(self, shift_id: str, mode: InteractionMode) -> None:
        shift = self._find(shift_id)
        if shift is None:
            return
        current = self._interactions.get(shift_id)
        if current is None or current.mode != mode:
            self._interactions[shift_id] = Interaction(mode=mode, baseline=shift)
            self.preview.pop(shift_id, None)

    def _interaction(self, shift_id: str, mode: InteractionMode) -> Optional[Interaction]:
        current = self._interactions.get(shift_id)
        if current is not None and current.mode == mode:
            return current
        self._begin_interaction(shift_id, mode)
        return self._interactions.get(shift_id)

    def _set_preview(self, shift: DraftShift) -> None:
        current = self.preview.get(shift.id) or self._find(shift.id)
        if current != shift:
            self.preview[shift.id] = shift

    def _commit_interaction(self, shift_id: str) -> bool:
        self._interactions.pop(shift_id, None)
        preview = self.preview.pop(shift_id, None)
        if preview is None:
            return False
        index = self._index(shift_id)
        if index is None:
            return False
        sanitized = self.sanitize(preview)
        if self.draft_shifts[index] == sanitized:
            return False
        self._record_undo()
        self.draft_shifts[index] = sanitized
        self.selected_shift_id = shift_id
        self._recalculate()
        return True

    def _record_undo(self) -> None:
        if self._undo_stack and self._undo_stack[-1] == self.draft_shifts:
            return
        self._undo_stack.append(list(self.draft_shifts))
        overflow = len(self._undo_stack) - self.settings.max_undo_depth
        if overflow > 0:
            del self._undo_stack[:overflow]

    def _recalculate(self) -> None:
        self.feedback = recalculate(self.context, self.draft_shifts, self.settings)
        logger.debug("Board recalculated: %d shifts, %d warnings", len(self.draft_shifts),
                     len(self.feedback.warnings))

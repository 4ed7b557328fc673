"""Tests for the interactive schedule board."""

from datetime import date

import pandas as pd
import pytest
from conftest import SHOP, TZ, WEEK, make_requirement

from shiftplanner.board import BoardContext, ScheduleBoard
from shiftplanner.config import BoardSettings
from shiftplanner.domain.drafts import DraftShift, ScheduleOption, WarningKind
from shiftplanner.domain.models import AvailabilityWindow, EmployeeRole, PlannedShift
from shiftplanner.engine import Orchestrator
from shiftplanner.services.availability import AvailabilityContext


@pytest.fixture
def board(roster):
    context = BoardContext(shop_id=SHOP, week_start=WEEK, tz=TZ, employees=roster)
    return ScheduleBoard(context)


def test_board_normalizes_week_start(roster):
    board = ScheduleBoard(BoardContext(shop_id=SHOP, week_start=date(2025, 3, 6), tz=TZ, employees=roster))
    assert board.week_start == WEEK


def test_add_shift_snaps_and_selects(board):
    shift = board.add_shift(3, 0, 543)

    assert (shift.start_minutes, shift.end_minutes) == (540, 780)
    assert board.selected_shift == shift
    assert board.draft_shifts == [shift]
    assert board.undo_depth == 1


def test_add_shift_clamps_into_visible_window(board):
    shift = board.add_shift(3, 9, 1100)
    assert shift.day_of_week == 6
    assert (shift.start_minutes, shift.end_minutes) == (1080, 1110)


def test_undo_restores_previous_lists_in_order(board):
    first = board.add_shift(3, 0, 540)
    board.add_shift(4, 1, 600)
    board.delete_shift(first.id)

    assert board.undo_last_change()
    assert [s.employee_id for s in board.draft_shifts] == [3, 4]
    assert board.undo_last_change()
    assert board.draft_shifts == [first]
    assert board.undo_last_change()
    assert board.draft_shifts == []
    assert not board.undo_last_change()


def test_undo_keeps_unrelated_shift_objects(board):
    kept = [board.add_shift(3, day, 540) for day in range(3)]
    moved = board.add_shift(4, 4, 600)
    assert board.update_shift(moved.with_changes(end_minutes=900))
    assert board.reassign_shift(moved.id, 1)
    assert board.delete_shift(moved.id)

    for _ in range(4):
        by_id = {s.id: s for s in board.draft_shifts}
        assert all(by_id[k.id] is k for k in kept)
        assert board.undo_last_change()

    assert board.draft_shifts[:3] == kept
    assert all(a is b for a, b in zip(board.draft_shifts, kept))


def test_undo_stack_is_bounded(roster):
    board = ScheduleBoard(
        BoardContext(shop_id=SHOP, week_start=WEEK, tz=TZ, employees=roster),
        BoardSettings(max_undo_depth=3),
    )
    for day in range(5):
        board.add_shift(3, day, 540)

    assert board.undo_depth == 3
    while board.undo_last_change():
        pass
    # the two oldest snapshots were dropped
    assert len(board.draft_shifts) == 2


def test_drag_previews_then_commits(board):
    shift = board.add_shift(3, 0, 540)

    board.begin_drag(shift.id)
    board.drag_shift(shift.id, dx=0, dy=84)  # 60 minutes at 1.4 px/min

    assert board.draft_shifts == [shift]
    moved = board.displayed_shifts()[0]
    assert (moved.start_minutes, moved.end_minutes) == (600, 840)
    assert board.is_interacting

    assert board.end_drag(shift.id)
    assert (board.draft_shifts[0].start_minutes, board.draft_shifts[0].end_minutes) == (600, 840)
    assert board.draft_shifts[0].id == shift.id
    assert board.preview == {}
    assert board.undo_depth == 2


def test_drag_translation_is_measured_from_gesture_start(board):
    shift = board.add_shift(3, 0, 540)
    board.begin_drag(shift.id)
    board.drag_shift(shift.id, dx=0, dy=84)
    board.drag_shift(shift.id, dx=0, dy=42)
    assert board.displayed_shifts()[0].start_minutes == 570


def test_drag_changes_day_past_threshold(board):
    shift = board.add_shift(3, 2, 540)
    board.begin_drag(shift.id)

    board.drag_shift(shift.id, dx=50, dy=0)
    assert board.displayed_shifts()[0].day_of_week == 2

    board.drag_shift(shift.id, dx=90, dy=0)
    assert board.displayed_shifts()[0].day_of_week == 3

    board.drag_shift(shift.id, dx=-400, dy=0)
    assert board.displayed_shifts()[0].day_of_week == 0


def test_drag_keeps_duration_inside_window(board):
    shift = board.add_shift(3, 0, 540)
    board.begin_drag(shift.id)
    board.drag_shift(shift.id, dx=0, dy=2000)
    moved = board.displayed_shifts()[0]
    assert (moved.start_minutes, moved.end_minutes) == (870, 1110)


def test_gesture_without_change_records_nothing(board):
    shift = board.add_shift(3, 0, 540)
    board.begin_drag(shift.id)
    board.drag_shift(shift.id, dx=5, dy=3)
    assert not board.end_drag(shift.id)
    assert board.undo_depth == 1


def test_cancel_interaction_discards_preview(board):
    shift = board.add_shift(3, 0, 540)
    board.begin_drag(shift.id)
    board.drag_shift(shift.id, dx=0, dy=84)
    board.cancel_interaction(shift.id)

    assert board.displayed_shifts() == [shift]
    assert not board.is_interacting
    assert not board.end_drag(shift.id)


def test_resize_end_respects_minimum_duration(board):
    shift = board.add_shift(3, 0, 540)
    board.begin_resize(shift.id)
    board.resize_shift_end(shift.id, dy=-1000)
    assert board.end_resize(shift.id)
    assert (board.draft_shifts[0].start_minutes, board.draft_shifts[0].end_minutes) == (540, 570)


def test_resize_start(board):
    shift = board.add_shift(3, 0, 540)
    board.begin_resize(shift.id, edge="start")
    board.resize_shift_start(shift.id, dy=42)
    board.end_resize(shift.id)
    assert board.draft_shifts[0].start_minutes == 570
    assert board.draft_shifts[0].end_minutes == 780


def test_copy_paste_offsets_by_snap_step(board):
    original = board.add_shift(3, 0, 540, 120)
    assert not board.can_paste
    assert board.copy_selection()

    pasted = board.paste_copied_shift()
    assert pasted is not None and pasted.id != original.id
    assert (pasted.employee_id, pasted.start_minutes, pasted.end_minutes) == (3, 555, 675)
    assert board.selected_shift_id == pasted.id

    again = board.paste_copied_shift()
    assert again.start_minutes == 570


def test_cut_removes_and_keeps_template(board):
    board.add_shift(3, 0, 540)
    assert board.cut_selection()
    assert board.draft_shifts == []
    assert board.can_paste
    pasted = board.paste_copied_shift()
    assert pasted.start_minutes == 555


def test_paste_without_template_returns_none(board):
    assert board.paste_copied_shift() is None


def test_sanitize_clamps_day_and_times(board):
    raw = DraftShift(employee_id=3, day_of_week=9, start_minutes=100, end_minutes=2000)
    clean = board.sanitize(raw)
    assert (clean.day_of_week, clean.start_minutes, clean.end_minutes) == (6, 390, 1110)
    assert clean.id == raw.id


def test_update_and_reassign_shift(board):
    shift = board.add_shift(3, 0, 540)
    assert not board.update_shift(shift)
    assert board.update_shift(shift.with_changes(end_minutes=827))
    assert board.draft_shifts[0].end_minutes == 825

    assert board.reassign_shift(shift.id, 4)
    assert board.draft_shifts[0].employee_id == 4
    assert not board.reassign_shift(shift.id, 4)
    assert not board.update_shift(DraftShift(employee_id=3, day_of_week=0, start_minutes=540, end_minutes=600))


def test_apply_and_restore_option(board):
    shifts = (
        DraftShift(employee_id=3, day_of_week=0, start_minutes=540, end_minutes=780),
        DraftShift(employee_id=4, day_of_week=1, start_minutes=540, end_minutes=780),
    )
    option = ScheduleOption(name="Option A · Balanced", score=1000, shifts=shifts, warnings=())

    board.apply_option(option)
    board.delete_shift(shifts[0].id)
    assert len(board.draft_shifts) == 1

    assert board.restore_original()
    assert board.draft_shifts == list(shifts)
    assert not board.can_undo


def test_restore_without_original(board):
    assert not board.restore_original()


def test_feedback_tracks_coverage(roster):
    context = BoardContext(
        shop_id=SHOP, week_start=WEEK, tz=TZ, employees=roster, coverage=[make_requirement(0, 540, 1020)]
    )
    board = ScheduleBoard(context)

    assert board.has_critical_warnings
    assert [w.day_of_week for w in board.feedback.gap_markers] == [0]

    shift = board.add_shift(3, 0, 540, 480)
    assert board.warnings == []
    assert board.feedback.gap_markers == []
    assert board.evaluation.uncovered_bucket_count == 0

    overlapping = board.add_shift(3, 0, 600, 120)
    kinds = {w.kind for w in board.warnings_by_shift()[overlapping.id]}
    assert WarningKind.CONFLICT in kinds
    assert shift.id not in board.warnings_by_shift()
    assert board.scheduled_minutes_by_employee() == {3: 600}


def test_filtered_employees(roster):
    availability = AvailabilityContext(
        windows=[AvailabilityWindow(shop_id=SHOP, employee_id=4, day_of_week=0, start_minutes=780, end_minutes=1020)]
    )
    board = ScheduleBoard(
        BoardContext(shop_id=SHOP, week_start=WEEK, tz=TZ, employees=roster, availability=availability)
    )

    assert [e.name for e in board.filtered_employees()] == ["Max Hayes", "Lena Ortiz", "Ava Stone", "Ben Park"]
    assert [e.name for e in board.filtered_employees(search="PARK")] == ["Ben Park"]
    assert [e.employee_id for e in board.filtered_employees(role=EmployeeRole.EMPLOYEE)] == [4, 3]

    at = pd.Timestamp("2025-03-03 09:00", tz="UTC")
    assert 4 not in [e.employee_id for e in board.filtered_employees(only_available_at=at)]


def test_week_navigation_keeps_drafts(board):
    board.add_shift(3, 0, 540)
    board.next_week()
    assert board.week_start == date(2025, 3, 10)
    assert len(board.draft_shifts) == 1
    board.previous_week()
    board.previous_week()
    assert board.week_start == date(2025, 2, 24)


def test_generate_options_does_not_touch_drafts(roster):
    context = BoardContext(
        shop_id=SHOP, week_start=WEEK, tz=TZ, employees=roster, coverage=[make_requirement(0, 540, 1020)]
    )
    board = ScheduleBoard(context)
    options = board.generate_options(Orchestrator(attempts_per_strategy=1))

    assert options and board.options == options
    assert board.draft_shifts == []
    board.apply_option(options[0])
    assert board.selected_option == options[0]


def test_publish_clears_drafts(db_session, roster):
    db_session.add_all(roster)
    db_session.commit()
    board = ScheduleBoard(BoardContext(shop_id=SHOP, week_start=WEEK, tz=TZ, employees=roster))
    board.add_shift(3, 0, 540)
    board.add_shift(None, 1, 540)

    assert board.publish(db_session) == 1
    assert board.draft_shifts == []
    assert not board.can_undo
    assert db_session.query(PlannedShift).count() == 1

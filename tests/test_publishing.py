"""Tests for publishing drafts to persisted shifts."""

from datetime import date, datetime

import pytest
from conftest import SHOP, WEEK

from shiftplanner.domain.drafts import DraftShift
from shiftplanner.domain.models import EmployeeRole, PlannedShift, PlannedShiftStatus
from shiftplanner.services.publishing import (
    EmployeeNotFoundError,
    InvalidShiftError,
    PublishError,
    build_month_records,
    build_week_records,
    load_reference_shifts,
    load_week_drafts,
    publish_month,
    publish_week,
)

TZ = "UTC"


@pytest.fixture
def employees_by_id(db_session, roster):
    db_session.add_all(roster)
    db_session.commit()
    return {e.employee_id: e for e in roster}


def _row(employee_id, start, end, status=PlannedShiftStatus.PUBLISHED, shop=SHOP):
    return PlannedShift(
        shop_id=shop,
        employee_id=employee_id,
        day_date=start.date(),
        start_time=start,
        end_time=end,
        status=status,
    )


def test_build_week_records_converts_to_naive_utc(employees_by_id):
    shifts = [
        DraftShift(employee_id=3, day_of_week=1, start_minutes=540, end_minutes=1020,
                   role_requirement=EmployeeRole.EMPLOYEE, notes="till"),
        DraftShift(employee_id=None, day_of_week=2, start_minutes=540, end_minutes=600),
    ]
    stamp = datetime(2025, 3, 1, 12, 0)

    records = build_week_records(shifts, SHOP, WEEK, "Australia/Sydney", employees_by_id, published_at=stamp)

    assert len(records) == 1
    record = records[0]
    assert record.day_date == date(2025, 3, 4)
    # 9:00 AEDT is 22:00 UTC the previous day
    assert record.start_time == datetime(2025, 3, 3, 22, 0)
    assert record.end_time == datetime(2025, 3, 4, 6, 0)
    assert record.status == PlannedShiftStatus.PUBLISHED
    assert record.published_at == stamp
    assert (record.role_requirement, record.notes) == (EmployeeRole.EMPLOYEE, "till")


def test_publish_week_replaces_non_completed_rows(db_session, employees_by_id):
    db_session.add_all(
        [
            _row(3, datetime(2025, 3, 3, 8, 0), datetime(2025, 3, 3, 12, 0)),
            _row(4, datetime(2025, 3, 4, 8, 0), datetime(2025, 3, 4, 12, 0), PlannedShiftStatus.PLANNED),
            _row(4, datetime(2025, 3, 5, 8, 0), datetime(2025, 3, 5, 12, 0), PlannedShiftStatus.COMPLETED),
            _row(3, datetime(2025, 3, 10, 8, 0), datetime(2025, 3, 10, 12, 0)),
            _row(3, datetime(2025, 3, 3, 8, 0), datetime(2025, 3, 3, 12, 0), shop="other-shop"),
        ]
    )
    db_session.commit()
    shifts = [
        DraftShift(employee_id=3, day_of_week=0, start_minutes=540, end_minutes=1020),
        DraftShift(employee_id=4, day_of_week=4, start_minutes=600, end_minutes=900),
    ]

    assert publish_week(db_session, shifts, SHOP, date(2025, 3, 5), TZ, employees_by_id) == 2

    rows = db_session.query(PlannedShift).order_by(PlannedShift.shop_id, PlannedShift.start_time).all()
    summary = [(r.shop_id, r.employee_id, r.start_time, r.status) for r in rows]
    assert summary == [
        (SHOP, 3, datetime(2025, 3, 3, 9, 0), PlannedShiftStatus.PUBLISHED),
        (SHOP, 4, datetime(2025, 3, 5, 8, 0), PlannedShiftStatus.COMPLETED),
        (SHOP, 4, datetime(2025, 3, 7, 10, 0), PlannedShiftStatus.PUBLISHED),
        (SHOP, 3, datetime(2025, 3, 10, 8, 0), PlannedShiftStatus.PUBLISHED),
        ("other-shop", 3, datetime(2025, 3, 3, 8, 0), PlannedShiftStatus.PUBLISHED),
    ]


def test_unknown_employee_leaves_database_untouched(db_session, employees_by_id):
    existing = _row(3, datetime(2025, 3, 3, 8, 0), datetime(2025, 3, 3, 12, 0))
    db_session.add(existing)
    db_session.commit()
    shifts = [
        DraftShift(employee_id=3, day_of_week=0, start_minutes=540, end_minutes=600),
        DraftShift(employee_id=99, day_of_week=1, start_minutes=540, end_minutes=600),
    ]

    with pytest.raises(EmployeeNotFoundError) as exc_info:
        publish_week(db_session, shifts, SHOP, WEEK, TZ, employees_by_id)

    assert exc_info.value.employee_id == 99
    assert isinstance(exc_info.value, PublishError)
    assert [r.id for r in db_session.query(PlannedShift).all()] == [existing.id]


def test_invalid_range_is_rejected(employees_by_id):
    shifts = [DraftShift(employee_id=3, day_of_week=0, start_minutes=600, end_minutes=540)]
    with pytest.raises(InvalidShiftError):
        build_week_records(shifts, SHOP, WEEK, TZ, employees_by_id)


def test_invalid_open_shift_is_still_rejected(employees_by_id):
    shifts = [DraftShift(employee_id=None, day_of_week=0, start_minutes=600, end_minutes=600)]
    with pytest.raises(InvalidShiftError):
        build_week_records(shifts, SHOP, WEEK, TZ, employees_by_id)


def test_build_month_records_repeats_weekday_pattern(employees_by_id):
    shifts = [
        DraftShift(employee_id=3, day_of_week=0, start_minutes=540, end_minutes=1020),
        DraftShift(employee_id=4, day_of_week=6, start_minutes=600, end_minutes=720),
    ]

    records = build_month_records(shifts, SHOP, WEEK, TZ, employees_by_id)

    mondays = [r.day_date for r in records if r.employee_id == 3]
    sundays = [r.day_date for r in records if r.employee_id == 4]
    assert mondays == [date(2025, 3, d) for d in (3, 10, 17, 24, 31)]
    assert sundays == [date(2025, 3, d) for d in (2, 9, 16, 23, 30)]


def test_publish_month_keeps_completed_and_other_months(db_session, employees_by_id):
    db_session.add_all(
        [
            _row(3, datetime(2025, 3, 12, 8, 0), datetime(2025, 3, 12, 12, 0)),
            _row(3, datetime(2025, 3, 13, 8, 0), datetime(2025, 3, 13, 12, 0), PlannedShiftStatus.COMPLETED),
            _row(3, datetime(2025, 4, 2, 8, 0), datetime(2025, 4, 2, 12, 0)),
        ]
    )
    db_session.commit()
    shifts = [DraftShift(employee_id=3, day_of_week=0, start_minutes=540, end_minutes=1020)]

    assert publish_month(db_session, shifts, SHOP, WEEK, TZ, employees_by_id) == 5

    rows = db_session.query(PlannedShift).order_by(PlannedShift.start_time).all()
    assert len(rows) == 7
    assert datetime(2025, 3, 12, 8, 0) not in [r.start_time for r in rows]
    assert [r.status for r in rows if r.start_time == datetime(2025, 3, 13, 8, 0)] == [PlannedShiftStatus.COMPLETED]


def test_load_week_drafts_round_trips_local_times(db_session, employees_by_id):
    tz = "Australia/Sydney"
    publish_week(
        db_session,
        [DraftShift(employee_id=3, day_of_week=2, start_minutes=540, end_minutes=1020)],
        SHOP,
        WEEK,
        tz,
        employees_by_id,
    )
    db_session.add(_row(4, datetime(2025, 3, 4, 22, 0), datetime(2025, 3, 5, 2, 0), PlannedShiftStatus.COMPLETED))
    db_session.commit()

    drafts = load_week_drafts(db_session, SHOP, WEEK, tz)

    assert [(d.employee_id, d.day_of_week, d.start_minutes, d.end_minutes) for d in drafts] == [(3, 2, 540, 1020)]


def test_load_reference_shifts(db_session, employees_by_id):
    db_session.add_all(
        [
            _row(3, datetime(2025, 3, 2, 16, 0), datetime(2025, 3, 2, 23, 0)),
            _row(3, datetime(2025, 3, 4, 9, 0), datetime(2025, 3, 4, 17, 0)),
            _row(4, datetime(2025, 3, 5, 9, 0), datetime(2025, 3, 5, 17, 0), PlannedShiftStatus.COMPLETED),
            _row(4, datetime(2025, 3, 10, 6, 0), datetime(2025, 3, 10, 12, 0)),
            _row(4, datetime(2025, 3, 20, 6, 0), datetime(2025, 3, 20, 12, 0)),
        ]
    )
    db_session.commit()

    reference = load_reference_shifts(db_session, SHOP, WEEK, TZ)

    assert [r.start_time for r in reference] == [
        datetime(2025, 3, 2, 16, 0),
        datetime(2025, 3, 5, 9, 0),
        datetime(2025, 3, 10, 6, 0),
    ]

"""Tests for database models and repositories."""

from datetime import date, datetime

import pytest
from conftest import SHOP, WEEK, make_requirement

from shiftplanner.domain.models import (
    AvailabilityOverride,
    CoverageRequirement,
    Employee,
    EmployeeRole,
    PlannedShift,
    PlannedShiftStatus,
)
from shiftplanner.domain.repositories import (
    AvailabilityRepository,
    CoverageRepository,
    EmployeeRepository,
    PlannedShiftRepository,
)


def test_employee_repository(db_session, roster):
    EmployeeRepository.bulk_create(db_session, roster)

    assert [e.employee_id for e in EmployeeRepository.get_all(db_session)] == [1, 2, 3, 4, 5]
    assert [e.employee_id for e in EmployeeRepository.get_active(db_session)] == [1, 2, 3, 4]
    assert EmployeeRepository.get_by_id(db_session, 2).role == EmployeeRole.SHIFT_LEAD
    assert EmployeeRepository.get_by_id(db_session, 42) is None
    assert EmployeeRepository.lookup(db_session)[3].name == "Ben Park"


def test_create_employee_defaults(db_session):
    employee = EmployeeRepository.create(db_session, Employee(employee_id=9, name="New Hire"))
    assert employee.role == EmployeeRole.EMPLOYEE
    assert employee.is_active


def test_coverage_requirement_guards():
    with pytest.raises(ValueError):
        CoverageRequirement(shop_id=SHOP, week_start=WEEK, day_of_week=0, start_minutes=600, end_minutes=600)
    assert make_requirement(0, 540, 600, headcount=0).headcount == 1


def test_coverage_repository_filters_week_and_shop(db_session):
    CoverageRepository.bulk_create(
        db_session,
        [
            make_requirement(2, 540, 600),
            make_requirement(0, 600, 660),
            make_requirement(0, 540, 600),
            make_requirement(0, 540, 600, shop="other-shop"),
            make_requirement(0, 540, 600, week=date(2025, 3, 10)),
        ],
    )

    found = CoverageRepository.get_for_week(db_session, SHOP, WEEK)
    assert [(r.day_of_week, r.start_minutes) for r in found] == [(0, 540), (0, 600), (2, 540)]


def test_availability_repository_date_range(db_session):
    AvailabilityRepository.bulk_create(
        db_session,
        [
            AvailabilityOverride(shop_id=SHOP, employee_id=3, date=date(2025, 3, 2), start_minutes=0,
                                 end_minutes=60, is_available=True),
            AvailabilityOverride(shop_id=SHOP, employee_id=3, date=date(2025, 3, 3), start_minutes=0,
                                 end_minutes=60, is_available=True),
            AvailabilityOverride(shop_id=SHOP, employee_id=3, date=date(2025, 3, 10), start_minutes=0,
                                 end_minutes=60, is_available=True),
        ],
    )
    found = AvailabilityRepository.get_overrides(db_session, SHOP, WEEK, date(2025, 3, 10))
    assert [o.date for o in found] == [date(2025, 3, 3)]


def test_planned_shift_defaults_and_duration():
    published = PlannedShift(
        shop_id=SHOP,
        employee_id=3,
        day_date=WEEK,
        start_time=datetime(2025, 3, 3, 9, 0),
        end_time=datetime(2025, 3, 3, 13, 30),
        status=PlannedShiftStatus.PUBLISHED,
    )
    assert published.published_at == published.created_at
    assert published.duration_hours == 4.5

    planned = PlannedShift(
        shop_id=SHOP,
        employee_id=3,
        day_date=WEEK,
        start_time=datetime(2025, 3, 3, 9, 0),
        end_time=datetime(2025, 3, 3, 13, 0),
    )
    assert planned.status == PlannedShiftStatus.PLANNED
    assert planned.published_at is None


def test_delete_replaceable_keeps_completed(db_session):
    def row(day, status):
        return PlannedShift(
            shop_id=SHOP,
            employee_id=3,
            day_date=date(2025, 3, day),
            start_time=datetime(2025, 3, day, 9, 0),
            end_time=datetime(2025, 3, day, 17, 0),
            status=status,
        )

    PlannedShiftRepository.bulk_create(
        db_session,
        [
            row(3, PlannedShiftStatus.PLANNED),
            row(4, PlannedShiftStatus.PUBLISHED),
            row(5, PlannedShiftStatus.COMPLETED),
            row(11, PlannedShiftStatus.PUBLISHED),
        ],
    )

    deleted = PlannedShiftRepository.delete_replaceable(
        db_session, SHOP, datetime(2025, 3, 3), datetime(2025, 3, 10)
    )
    db_session.commit()

    assert deleted == 2
    remaining = PlannedShiftRepository.get_by_employee(db_session, 3)
    assert [r.day_date.day for r in remaining] == [5, 11]

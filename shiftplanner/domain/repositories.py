"""Repository classes for data access."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from .models import (
    AvailabilityOverride,
    AvailabilityWindow,
    CoverageRequirement,
    Employee,
    PlannedShift,
    PlannedShiftStatus,
    UnavailableDate,
)


class EmployeeRepository:
    """Repository for employee data access."""

    @staticmethod
    def get_all(session: Session) -> List[Employee]:
        """Get all employees."""
        return session.query(Employee).order_by(Employee.employee_id).all()

    @staticmethod
    def get_active(session: Session) -> List[Employee]:
        """Get employees that can be scheduled."""
        return (
            session.query(Employee)
            .filter(Employee.is_active.is_(True))
            .order_by(Employee.employee_id)
            .all()
        )

    @staticmethod
    def get_by_id(session: Session, employee_id: int) -> Optional[Employee]:
        """Get employee by ID."""
        return session.query(Employee).filter(Employee.employee_id == employee_id).first()

    @staticmethod
    def lookup(session: Session) -> Dict[int, Employee]:
        """Build the id -> employee map used once per scheduling operation."""
        return {emp.employee_id: emp for emp in EmployeeRepository.get_all(session)}

    @staticmethod
    def create(session: Session, employee: Employee) -> Employee:
        """Create a new employee."""
        session.add(employee)
        session.commit()
        session.refresh(employee)
        return employee

    @staticmethod
    def bulk_create(session: Session, employees: List[Employee]) -> None:
        """Create multiple employees."""
        session.add_all(employees)
        session.commit()


class CoverageRepository:
    """Repository for coverage requirements."""

    @staticmethod
    def get_for_week(session: Session, shop_id: str, week_start: date) -> List[CoverageRequirement]:
        """Get requirements anchored to a week, ordered by day then start time."""
        return (
            session.query(CoverageRequirement)
            .filter(CoverageRequirement.shop_id == shop_id)
            .filter(CoverageRequirement.week_start == week_start)
            .order_by(
                CoverageRequirement.day_of_week,
                CoverageRequirement.start_minutes,
                CoverageRequirement.end_minutes,
            )
            .all()
        )

    @staticmethod
    def bulk_create(session: Session, requirements: List[CoverageRequirement]) -> None:
        """Create multiple coverage requirements."""
        session.add_all(requirements)
        session.commit()


class AvailabilityRepository:
    """Repository for availability windows, overrides and unavailable dates."""

    @staticmethod
    def get_windows(session: Session, shop_id: str) -> List[AvailabilityWindow]:
        return session.query(AvailabilityWindow).filter(AvailabilityWindow.shop_id == shop_id).all()

    @staticmethod
    def get_overrides(session: Session, shop_id: str, start: date, end: date) -> List[AvailabilityOverride]:
        """Get overrides dated within [start, end)."""
        return (
            session.query(AvailabilityOverride)
            .filter(AvailabilityOverride.shop_id == shop_id)
            .filter(AvailabilityOverride.date >= start)
            .filter(AvailabilityOverride.date < end)
            .all()
        )

    @staticmethod
    def get_unavailable_dates(session: Session, shop_id: str, start: date, end: date) -> List[UnavailableDate]:
        """Get unavailable dates within [start, end)."""
        return (
            session.query(UnavailableDate)
            .filter(UnavailableDate.shop_id == shop_id)
            .filter(UnavailableDate.date >= start)
            .filter(UnavailableDate.date < end)
            .all()
        )

    @staticmethod
    def bulk_create(session: Session, records: list) -> None:
        """Create windows, overrides or unavailable dates in one commit."""
        session.add_all(records)
        session.commit()


class PlannedShiftRepository:
    """Repository for persisted shifts. Timestamps are naive UTC."""

    @staticmethod
    def get_in_range(session: Session, shop_id: str, start: datetime, end: datetime) -> List[PlannedShift]:
        """Get shifts starting within [start, end)."""
        return (
            session.query(PlannedShift)
            .filter(PlannedShift.shop_id == shop_id)
            .filter(PlannedShift.start_time >= start)
            .filter(PlannedShift.start_time < end)
            .order_by(PlannedShift.start_time)
            .all()
        )

    @staticmethod
    def get_by_employee(session: Session, employee_id: int) -> List[PlannedShift]:
        """Get all shifts for a specific employee."""
        return (
            session.query(PlannedShift)
            .filter(PlannedShift.employee_id == employee_id)
            .order_by(PlannedShift.start_time)
            .all()
        )

    @staticmethod
    def delete_replaceable(session: Session, shop_id: str, start: datetime, end: datetime) -> int:
        """
        Delete non-completed shifts starting within [start, end).

        Does not commit; the caller commits together with the replacement rows.

        Returns:
            Number of deleted rows
        """
        return (
            session.query(PlannedShift)
            .filter(PlannedShift.shop_id == shop_id)
            .filter(PlannedShift.start_time >= start)
            .filter(PlannedShift.start_time < end)
            .filter(PlannedShift.status != PlannedShiftStatus.COMPLETED)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def add_all(session: Session, shifts: List[PlannedShift]) -> None:
        """Stage shifts for insertion without committing."""
        session.add_all(shifts)

    @staticmethod
    def bulk_create(session: Session, shifts: List[PlannedShift]) -> None:
        """Create multiple shifts."""
        session.add_all(shifts)
        session.commit()

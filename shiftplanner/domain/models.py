"""SQLAlchemy models for the persisted scheduling entities."""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class EmployeeRole(str, enum.Enum):
    """Employee role, ordered manager > shift lead > employee."""

    MANAGER = "MANAGER"
    SHIFT_LEAD = "SHIFT_LEAD"
    EMPLOYEE = "EMPLOYEE"

    @property
    def rank(self) -> int:
        return {EmployeeRole.MANAGER: 3, EmployeeRole.SHIFT_LEAD: 2, EmployeeRole.EMPLOYEE: 1}[self]

    @property
    def sort_order(self) -> int:
        return 3 - self.rank

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class PlannedShiftStatus(str, enum.Enum):
    PLANNED = "PLANNED"
    PUBLISHED = "PUBLISHED"
    COMPLETED = "COMPLETED"


class Employee(Base):
    """Employee on the roster. Read-only from the scheduling engine's point of view."""

    __tablename__ = "employees"

    employee_id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    role = Column(Enum(EmployeeRole), nullable=False, default=EmployeeRole.EMPLOYEE)
    is_active = Column(Boolean, nullable=False, default=True)

    def __init__(self, **kwargs):
        kwargs.setdefault("role", EmployeeRole.EMPLOYEE)
        kwargs.setdefault("is_active", True)
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return f"<Employee(id={self.employee_id}, name='{self.name}', role='{self.role.value}')>"


class CoverageRequirement(Base):
    """Headcount needed on one weekday between two minute-of-day offsets for one week."""

    __tablename__ = "coverage_requirements"
    __table_args__ = (
        CheckConstraint("end_minutes > start_minutes", name="ck_coverage_range"),
        CheckConstraint("headcount >= 1", name="ck_coverage_headcount"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    shop_id = Column(String(64), nullable=False, index=True)
    week_start = Column(Date, nullable=False)  # Monday of the anchored week
    day_of_week = Column(Integer, nullable=False)  # 0 = Monday ... 6 = Sunday
    start_minutes = Column(Integer, nullable=False)
    end_minutes = Column(Integer, nullable=False)
    headcount = Column(Integer, nullable=False, default=1)
    role_requirement = Column(Enum(EmployeeRole), nullable=True)
    notes = Column(Text, nullable=True)

    def __init__(self, **kwargs):
        start = kwargs.get("start_minutes")
        end = kwargs.get("end_minutes")
        if start is not None and end is not None and end <= start:
            raise ValueError(f"Coverage requirement must end after it starts ({start} -> {end})")
        kwargs["headcount"] = max(1, int(kwargs.get("headcount") or 1))
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return (
            f"<CoverageRequirement(day={self.day_of_week}, {self.start_minutes}-{self.end_minutes}, "
            f"headcount={self.headcount}, role={self.role_requirement})>"
        )


class AvailabilityWindow(Base):
    """Recurring weekly window during which an employee can work."""

    __tablename__ = "availability_windows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    shop_id = Column(String(64), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.employee_id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Monday ... 6 = Sunday
    start_minutes = Column(Integer, nullable=False)
    end_minutes = Column(Integer, nullable=False)


class AvailabilityOverride(Base):
    """One-off exception for a specific date that grants or revokes availability."""

    __tablename__ = "availability_overrides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    shop_id = Column(String(64), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.employee_id"), nullable=False)
    date = Column(Date, nullable=False)
    start_minutes = Column(Integer, nullable=False)
    end_minutes = Column(Integer, nullable=False)
    is_available = Column(Boolean, nullable=False)
    notes = Column(Text, nullable=True)


class UnavailableDate(Base):
    """Hard block for an entire day."""

    __tablename__ = "unavailable_dates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    shop_id = Column(String(64), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.employee_id"), nullable=False)
    date = Column(Date, nullable=False)
    reason = Column(String(200), nullable=True)


class PlannedShift(Base):
    """Persisted shift with concrete timestamps (stored as naive UTC)."""

    __tablename__ = "planned_shifts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    shop_id = Column(String(64), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.employee_id"), nullable=True)
    day_date = Column(Date, nullable=False)  # local calendar date of the shift
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(Enum(PlannedShiftStatus), nullable=False, default=PlannedShiftStatus.PLANNED)
    role_requirement = Column(Enum(EmployeeRole), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    published_at = Column(DateTime, nullable=True)

    def __init__(self, **kwargs):
        kwargs.setdefault("status", PlannedShiftStatus.PLANNED)
        kwargs.setdefault("created_at", _utcnow())
        if kwargs["status"] == PlannedShiftStatus.PUBLISHED:
            kwargs.setdefault("published_at", kwargs["created_at"])
        super().__init__(**kwargs)

    @property
    def duration_hours(self) -> float:
        return max(0.0, (self.end_time - self.start_time).total_seconds() / 3600.0)

    def __repr__(self) -> str:
        return (
            f"<PlannedShift(id={self.id}, emp={self.employee_id}, {self.start_time} - {self.end_time}, "
            f"status={self.status.value})>"
        )

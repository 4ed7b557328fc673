"""Pytest configuration and shared fixtures."""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from shiftplanner.domain.models import Base, CoverageRequirement, Employee, EmployeeRole

WEEK = date(2025, 3, 3)  # a Monday
SHOP = "main-street"
TZ = "UTC"


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def db_session():
    """Create in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def roster():
    """Small roster: one manager, one shift lead, two employees and an inactive one."""
    return [
        Employee(employee_id=1, name="Max Hayes", role=EmployeeRole.MANAGER),
        Employee(employee_id=2, name="Lena Ortiz", role=EmployeeRole.SHIFT_LEAD),
        Employee(employee_id=3, name="Ben Park", role=EmployeeRole.EMPLOYEE),
        Employee(employee_id=4, name="Ava Stone", role=EmployeeRole.EMPLOYEE),
        Employee(employee_id=5, name="Old Timer", role=EmployeeRole.EMPLOYEE, is_active=False),
    ]


def make_requirement(day, start, end, headcount=1, role=None, week=WEEK, shop=SHOP):
    return CoverageRequirement(
        shop_id=shop,
        week_start=week,
        day_of_week=day,
        start_minutes=start,
        end_minutes=end,
        headcount=headcount,
        role_requirement=role,
    )

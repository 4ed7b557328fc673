"""Services for scheduling logic."""

from .availability import AvailabilityContext, AvailabilityStatus, availability_status, is_available
from .coverage import coverage_warnings, evaluate_coverage, scope_requirements
from .conflicts import detect_overlaps, detect_published_conflicts, overtime_warnings, rest_violations
from .publishing import (
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
from .scoring import score_option
from .validation import ValidationInput, sort_warnings, validate_schedule

__all__ = [
    "AvailabilityContext",
    "AvailabilityStatus",
    "availability_status",
    "is_available",
    "coverage_warnings",
    "evaluate_coverage",
    "scope_requirements",
    "detect_overlaps",
    "detect_published_conflicts",
    "overtime_warnings",
    "rest_violations",
    "PublishError",
    "EmployeeNotFoundError",
    "InvalidShiftError",
    "build_week_records",
    "build_month_records",
    "publish_week",
    "publish_month",
    "load_reference_shifts",
    "load_week_drafts",
    "score_option",
    "ValidationInput",
    "validate_schedule",
    "sort_warnings",
]

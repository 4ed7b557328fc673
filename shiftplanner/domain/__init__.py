"""Domain models, draft value types and data access layer."""

from .drafts import (
    CoverageBucketState,
    CoverageEvaluation,
    DraftShift,
    ScheduleOption,
    ScheduleWarning,
    Severity,
    WarningKind,
    shift_signature,
)
from .models import (
    AvailabilityOverride,
    AvailabilityWindow,
    Base,
    CoverageRequirement,
    Employee,
    EmployeeRole,
    PlannedShift,
    PlannedShiftStatus,
    UnavailableDate,
)
from .repositories import (
    AvailabilityRepository,
    CoverageRepository,
    EmployeeRepository,
    PlannedShiftRepository,
)

__all__ = [
    "Base",
    "Employee",
    "EmployeeRole",
    "CoverageRequirement",
    "AvailabilityWindow",
    "AvailabilityOverride",
    "UnavailableDate",
    "PlannedShift",
    "PlannedShiftStatus",
    "DraftShift",
    "ScheduleWarning",
    "ScheduleOption",
    "Severity",
    "WarningKind",
    "CoverageBucketState",
    "CoverageEvaluation",
    "shift_signature",
    "EmployeeRepository",
    "CoverageRepository",
    "AvailabilityRepository",
    "PlannedShiftRepository",
]

"""In-memory scheduling value types: drafts, warnings, options and coverage buckets."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
from uuid import uuid4

from .models import EmployeeRole


def new_draft_id() -> str:
    return str(uuid4())


class WarningKind(str, enum.Enum):
    UNCOVERED = "UNCOVERED"
    CONFLICT = "CONFLICT"
    OVERTIME = "OVERTIME"
    REST_VIOLATION = "REST_VIOLATION"
    AVAILABILITY = "AVAILABILITY"
    INVALID_SHIFT = "INVALID_SHIFT"
    UNASSIGNED = "UNASSIGNED"

    @property
    def default_severity(self) -> "Severity":
        return _DEFAULT_SEVERITY[self]


class Severity(enum.IntEnum):
    INFO = 0
    WARNING = 1
    CRITICAL = 2


_DEFAULT_SEVERITY = {
    WarningKind.UNCOVERED: Severity.CRITICAL,
    WarningKind.CONFLICT: Severity.CRITICAL,
    WarningKind.OVERTIME: Severity.WARNING,
    WarningKind.REST_VIOLATION: Severity.WARNING,
    WarningKind.AVAILABILITY: Severity.WARNING,
    WarningKind.INVALID_SHIFT: Severity.WARNING,
    WarningKind.UNASSIGNED: Severity.INFO,
}


@dataclass(frozen=True)
class DraftShift:
    """
    Proposed or edited assignment that only exists in memory until publishing.

    ``employee_id`` of ``None`` marks an open (unassigned) shift. Times are minutes
    since local midnight and ``day_of_week`` is 0 = Monday ... 6 = Sunday.
    """

    employee_id: Optional[int]
    day_of_week: int
    start_minutes: int
    end_minutes: int
    role_requirement: Optional[EmployeeRole] = None
    notes: Optional[str] = None
    id: str = field(default_factory=new_draft_id)

    @property
    def duration_minutes(self) -> int:
        return max(0, self.end_minutes - self.start_minutes)

    @property
    def is_open(self) -> bool:
        return self.employee_id is None

    @property
    def is_valid_range(self) -> bool:
        return self.end_minutes > self.start_minutes

    def with_changes(self, **changes) -> "DraftShift":
        return replace(self, **changes)


@dataclass(frozen=True)
class ScheduleWarning:
    """Non-blocking validation finding; the optional fields correlate it to the grid."""

    kind: WarningKind
    severity: Severity
    message: str
    day_of_week: Optional[int] = None
    minute: Optional[int] = None
    employee_id: Optional[int] = None
    shift_id: Optional[str] = None

    @classmethod
    def of(cls, kind: WarningKind, message: str, **kwargs) -> "ScheduleWarning":
        severity = kwargs.pop("severity", kind.default_severity)
        return cls(kind=kind, severity=severity, message=message, **kwargs)


def shift_signature(shifts: Iterable[DraftShift]) -> str:
    """Canonical text signature used to deduplicate generated schedules."""
    parts = sorted(
        (s.day_of_week, s.start_minutes, s.end_minutes, "open" if s.employee_id is None else str(s.employee_id))
        for s in shifts
    )
    return "|".join(f"{emp}-{day}-{start}-{end}" for day, start, end, emp in parts)


@dataclass(frozen=True)
class ScheduleOption:
    """Named, scored, immutable bundle of draft shifts."""

    name: str
    score: int
    shifts: Tuple[DraftShift, ...]
    warnings: Tuple[ScheduleWarning, ...]
    strategy: str = ""
    seed: Optional[int] = None

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def critical_count(self) -> int:
        return sum(1 for w in self.warnings if w.severity == Severity.CRITICAL)

    @property
    def total_shift_count(self) -> int:
        return len(self.shifts)

    @property
    def total_hours(self) -> float:
        return sum(s.duration_minutes for s in self.shifts) / 60.0

    @property
    def signature(self) -> str:
        return shift_signature(self.shifts)


@dataclass(frozen=True)
class CoverageBucketState:
    day_of_week: int
    bucket_start_minutes: int
    needed: int
    assigned: int

    @property
    def delta(self) -> int:
        return self.assigned - self.needed

    @property
    def key(self) -> str:
        return f"{self.day_of_week}-{self.bucket_start_minutes}"


@dataclass
class CoverageEvaluation:
    buckets_by_day: Dict[int, List[CoverageBucketState]]
    uncovered_bucket_count: int
    over_covered_bucket_count: int
    window_start: int = 0
    window_end: int = 24 * 60

    @classmethod
    def empty(cls) -> "CoverageEvaluation":
        return cls(buckets_by_day={}, uncovered_bucket_count=0, over_covered_bucket_count=0)

    def buckets(self) -> Iterator[CoverageBucketState]:
        for day in sorted(self.buckets_by_day):
            yield from self.buckets_by_day[day]

    def uncovered_buckets(self, day: Optional[int] = None) -> List[CoverageBucketState]:
        return [
            b for b in self.buckets()
            if b.delta < 0 and (day is None or b.day_of_week == day)
        ]

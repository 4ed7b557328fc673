"""Base strategy interface and the shared slot-filling loop used by every generation strategy."""

from __future__ import annotations

import logging
import random
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from shiftplanner.config import SchedulingConstraints
from shiftplanner.domain.drafts import DraftShift
from shiftplanner.domain.models import CoverageRequirement, Employee, EmployeeRole, PlannedShift
from shiftplanner.services.availability import AvailabilityContext, is_available, overlaps
from shiftplanner.services.conflicts import existing_minutes_by_employee, scoped_existing
from shiftplanner.services.timeplan import MINUTES_PER_DAY, from_storage, local_timestamp

from .condense import condense_shifts

logger = logging.getLogger(__name__)

GOLDEN_GAMMA = 0x9E3779B97F4A7C15
_MASK64 = (1 << 64) - 1
OVERTIME_SLACK_MINUTES = 4 * 60


def derive_seed(strategy_index: int, attempt: int, base_seed: int = 0) -> int:
    """Deterministic 64-bit seed for one (strategy, attempt) run."""
    z = (base_seed + (strategy_index + 1) * GOLDEN_GAMMA + attempt * 0xBF58476D1CE4E5B9) & _MASK64
    z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & _MASK64
    z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & _MASK64
    return z ^ (z >> 31)


def draft_id(rng: random.Random) -> str:
    """Draft identity drawn from the run's generator so seeded runs reproduce ids."""
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


@dataclass
class GenerationInput:
    """Inputs for one generation run. Coverage is scoped to the shop and week by the orchestrator."""

    shop_id: str
    week_start: date | datetime | pd.Timestamp
    tz: str
    coverage: Sequence[CoverageRequirement]
    employees: Sequence[Employee]
    availability: AvailabilityContext = field(default_factory=AvailabilityContext)
    existing_shifts: Sequence[PlannedShift] = field(default_factory=list)
    constraints: SchedulingConstraints = field(default_factory=SchedulingConstraints)
    visible_start_minutes: int = 0
    visible_end_minutes: int = MINUTES_PER_DAY

    @property
    def employees_by_id(self) -> Dict[int, Employee]:
        return {emp.employee_id: emp for emp in self.employees}

    @property
    def active_employees(self) -> List[Employee]:
        return sorted((emp for emp in self.employees if emp.is_active), key=lambda e: e.employee_id)


@dataclass(frozen=True)
class Slot:
    """One unit of headcount within a coverage block."""

    day_of_week: int
    start_minutes: int
    end_minutes: int
    role_requirement: Optional[EmployeeRole] = None

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes


def expand_slots(requirements: Sequence[CoverageRequirement]) -> List[Slot]:
    """One slot per headcount unit, ordered by day then start time."""
    ordered = sorted(requirements, key=lambda r: (r.day_of_week, r.start_minutes, r.end_minutes))
    return [
        Slot(r.day_of_week, r.start_minutes, r.end_minutes, r.role_requirement)
        for r in ordered
        for _ in range(max(1, r.headcount))
    ]


@dataclass
class _RunState:
    shifts: List[DraftShift] = field(default_factory=list)
    minutes_by_employee: Dict[int, int] = field(default_factory=lambda: defaultdict(int))

    def starts_for(self, employee_id: int) -> List[int]:
        return [s.start_minutes for s in self.shifts if s.employee_id == employee_id]

    def touches(self, employee_id: int, slot: Slot) -> bool:
        return any(
            s.employee_id == employee_id
            and s.day_of_week == slot.day_of_week
            and (s.end_minutes == slot.start_minutes or s.start_minutes == slot.end_minutes)
            for s in self.shifts
        )

    def overlaps_draft(self, employee_id: int, slot: Slot) -> bool:
        return any(
            s.employee_id == employee_id
            and s.day_of_week == slot.day_of_week
            and overlaps(s.start_minutes, s.end_minutes, slot.start_minutes, slot.end_minutes)
            for s in self.shifts
        )


class BaseStrategy(ABC):
    """
    Abstract base class for generation strategies.

    Each strategy fills the same slot list greedily; subclasses only decide how
    candidates are ranked and whether the availability fallback is allowed.
    """

    key: str = "base"
    title: str = "Base"
    strict: bool = False  # never fall back to ignoring availability

    @abstractmethod
    def candidate_cost(
        self,
        assigned_minutes: float,
        consistency: float,
        contiguous: float,
        jitter: float,
    ) -> float:
        """
        Cost of assigning a candidate to the current slot; lowest wins.

        Args:
            assigned_minutes: Minutes already assigned this week, scaled by the fairness weight
            consistency: Distance of the slot start from the employee's average start, in 2h units
            contiguous: Negative bonus when the slot touches one of the employee's shifts that day
            jitter: Uniform random value in [0, 0.35] for tie-breaking
        """

    def get_title(self) -> str:
        return self.title

    def build(
        self,
        data: GenerationInput,
        slots: Sequence[Slot],
        rng: random.Random,
    ) -> List[DraftShift]:
        """
        Fill every slot and return the condensed draft shifts.

        Args:
            data: Roster, availability and persisted context
            slots: Expanded slots in the order they should be filled
            rng: Generator owned by this run; all randomness comes from it

        Returns:
            Condensed draft shifts; unfilled slots become open shifts
        """
        state = _RunState()
        baseline = existing_minutes_by_employee(
            data.existing_shifts, data.week_start, data.tz, shop_id=data.shop_id
        )
        existing_by_employee: Dict[int, List[PlannedShift]] = defaultdict(list)
        for planned in scoped_existing(data.existing_shifts, data.shop_id):
            existing_by_employee[planned.employee_id].append(planned)
        active = data.active_employees

        for slot in slots:
            pool = self.candidate_pool(data, slot, state, active, baseline, existing_by_employee)
            if not pool:
                logger.debug("%s: no candidate for day %d %d-%d", self.key, slot.day_of_week,
                             slot.start_minutes, slot.end_minutes)
                state.shifts.append(
                    DraftShift(
                        employee_id=None,
                        day_of_week=slot.day_of_week,
                        start_minutes=slot.start_minutes,
                        end_minutes=slot.end_minutes,
                        role_requirement=slot.role_requirement,
                        id=draft_id(rng),
                    )
                )
                continue

            chosen = self.pick(data, slot, state, pool, rng)
            state.shifts.append(
                DraftShift(
                    employee_id=chosen.employee_id,
                    day_of_week=slot.day_of_week,
                    start_minutes=slot.start_minutes,
                    end_minutes=slot.end_minutes,
                    role_requirement=slot.role_requirement,
                    id=draft_id(rng),
                )
            )
            state.minutes_by_employee[chosen.employee_id] += slot.duration_minutes

        return condense_shifts(state.shifts)

    def candidate_pool(
        self,
        data: GenerationInput,
        slot: Slot,
        state: _RunState,
        active: Sequence[Employee],
        baseline: Mapping[int, int],
        existing_by_employee: Mapping[int, List[PlannedShift]],
    ) -> List[Employee]:
        """Eligible employees for a slot, applying the availability fallback for non-strict strategies."""
        cap = data.constraints.max_hours_per_employee_per_week * 60 + OVERTIME_SLACK_MINUTES
        slot_start = local_timestamp(data.week_start, slot.day_of_week, slot.start_minutes, data.tz)
        slot_end = local_timestamp(data.week_start, slot.day_of_week, slot.end_minutes, data.tz)

        eligible: List[Employee] = []
        for employee in active:
            emp_id = employee.employee_id
            if slot.role_requirement is not None and employee.role != slot.role_requirement:
                continue
            if state.overlaps_draft(emp_id, slot):
                continue
            if any(
                max(slot_start, from_storage(p.start_time)) < min(slot_end, from_storage(p.end_time))
                for p in existing_by_employee.get(emp_id, ())
            ):
                continue
            projected = baseline.get(emp_id, 0) + state.minutes_by_employee[emp_id] + slot.duration_minutes
            if projected > cap:
                continue
            eligible.append(employee)

        available = [
            employee for employee in eligible
            if is_available(
                employee.employee_id,
                slot.day_of_week,
                slot.start_minutes,
                slot.end_minutes,
                data.week_start,
                data.tz,
                data.availability,
                shop_id=data.shop_id,
            )
        ]
        if available or self.strict:
            return available
        # TODO: restrict the fallback to employees with no availability data once the product call is made
        return eligible

    def pick(
        self,
        data: GenerationInput,
        slot: Slot,
        state: _RunState,
        pool: Sequence[Employee],
        rng: random.Random,
    ) -> Employee:
        constraints = data.constraints
        ranked = []
        for employee in pool:
            emp_id = employee.employee_id
            consistency = 0.0
            starts = state.starts_for(emp_id)
            if constraints.prefer_consistent_start_times and starts:
                consistency = abs(slot.start_minutes - sum(starts) / len(starts)) / 120.0
            contiguous = -18.0 if state.touches(emp_id, slot) else 0.0
            jitter = rng.uniform(0.0, 0.35)
            cost = self.candidate_cost(
                state.minutes_by_employee[emp_id] * constraints.fairness_weight,
                consistency,
                contiguous,
                jitter,
            )
            ranked.append((cost, emp_id, employee))
        return min(ranked, key=lambda item: (item[0], item[1]))[2]

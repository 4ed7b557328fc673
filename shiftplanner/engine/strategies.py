"""Concrete generation strategies. Each one only changes how candidates are ranked."""

from __future__ import annotations

from typing import List

from .base import BaseStrategy


class FairnessFirst(BaseStrategy):
    """Spread hours evenly; the least-loaded candidate wins."""

    key = "fairness"
    title = "Fairness First"

    def candidate_cost(self, assigned_minutes, consistency, contiguous, jitter):
        return assigned_minutes + consistency * 30 + jitter * 20


class ConsistencyFirst(BaseStrategy):
    """Keep each employee's start times close to their average."""

    key = "consistency"
    title = "Consistency First"

    def candidate_cost(self, assigned_minutes, consistency, contiguous, jitter):
        return consistency * 80 + assigned_minutes * 0.25 + jitter * 20


class FewestShifts(BaseStrategy):
    """Prefer extending an employee's existing shift so condensing yields fewer, longer shifts."""

    key = "fewest_shifts"
    title = "Fewest Shifts"

    def candidate_cost(self, assigned_minutes, consistency, contiguous, jitter):
        return assigned_minutes * 0.7 + contiguous + jitter * 25


class StrictAvailability(BaseStrategy):
    """Only assign employees who are available; leave the slot open otherwise."""

    key = "strict_availability"
    title = "Strict Availability"
    strict = True

    def candidate_cost(self, assigned_minutes, consistency, contiguous, jitter):
        return assigned_minutes + consistency * 16 + jitter * 12


class Balanced(BaseStrategy):
    key = "balanced"
    title = "Balanced"

    def candidate_cost(self, assigned_minutes, consistency, contiguous, jitter):
        return assigned_minutes * 0.65 + consistency * 32 + contiguous + jitter * 16


def default_strategies() -> List[BaseStrategy]:
    return [FairnessFirst(), ConsistencyFirst(), FewestShifts(), StrictAvailability(), Balanced()]

"""Orchestrator - runs every strategy over the same slots and ranks the distinct results."""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import List, Optional, Sequence

from shiftplanner.config import MAX_OPTION_COUNT
from shiftplanner.domain.drafts import ScheduleOption
from shiftplanner.services.coverage import evaluate_coverage, scope_requirements
from shiftplanner.services.scoring import score_option
from shiftplanner.services.validation import ValidationInput, validate_schedule

from .base import BaseStrategy, GenerationInput, Slot, derive_seed, expand_slots
from .strategies import default_strategies

logger = logging.getLogger(__name__)


def option_label(rank: int, title: str) -> str:
    """Display name, e.g. "Option A · Fairness First" for rank 0."""
    return f"Option {chr(ord('A') + rank)} · {title}"


def rank_options(options: Sequence[ScheduleOption]) -> List[ScheduleOption]:
    """Score desc, then fewer warnings, then signature; never depends on run order."""
    return sorted(options, key=lambda o: (-o.score, o.warning_count, o.signature))


class Orchestrator:
    """
    Orchestrator coordinates multiple generation strategies.

    Each (strategy, attempt) run owns its own seeded generator, so runs are
    independent and a fixed ``base_seed`` reproduces the same options.
    """

    def __init__(
        self,
        strategies: Optional[List[BaseStrategy]] = None,
        attempts_per_strategy: int = 3,
        base_seed: int = 0,
    ):
        """
        Initialize orchestrator.

        Args:
            strategies: Strategies to run (default: fairness, consistency, fewest shifts,
                strict availability, balanced)
            attempts_per_strategy: Runs per strategy; attempt 0 keeps day/start order,
                later attempts shuffle the slots
            base_seed: Mixed into every derived seed
        """
        self.strategies = strategies or default_strategies()
        self.attempts_per_strategy = max(1, attempts_per_strategy)
        self.base_seed = base_seed

    def run_strategy(
        self,
        data: GenerationInput,
        strategy: BaseStrategy,
        slots: Sequence[Slot],
        seed: int,
        shuffle: bool = False,
    ) -> ScheduleOption:
        """Build, validate and score one candidate. The option is named after the strategy."""
        rng = random.Random(seed)
        ordered = list(slots)
        if shuffle:
            rng.shuffle(ordered)

        shifts = strategy.build(data, ordered, rng)
        warnings = validate_schedule(
            ValidationInput(
                shop_id=data.shop_id,
                week_start=data.week_start,
                tz=data.tz,
                shifts=shifts,
                coverage=data.coverage,
                employees_by_id=data.employees_by_id,
                availability=data.availability,
                existing_shifts=data.existing_shifts,
                constraints=data.constraints,
            )
        )
        evaluation = evaluate_coverage(
            data.coverage, shifts, data.visible_start_minutes, data.visible_end_minutes
        )
        score = score_option(
            shifts, warnings, evaluation, fairness_weight=data.constraints.fairness_weight
        )
        return ScheduleOption(
            name=strategy.get_title(),
            score=score,
            shifts=tuple(shifts),
            warnings=tuple(warnings),
            strategy=strategy.get_title(),
            seed=seed,
        )

    def generate(self, data: GenerationInput) -> List[ScheduleOption]:
        """
        Generate up to ``requested_option_count`` distinct, ranked options.

        Args:
            data: Generation input; coverage is scoped to the shop and week here

        Returns:
            Ranked options named "Option A · <strategy>", or [] when there is
            nothing to schedule
        """
        coverage = scope_requirements(data.coverage, data.shop_id, data.week_start, data.tz)
        if not coverage or not data.active_employees:
            logger.info("Nothing to generate for %s: %d requirements, %d active employees",
                        data.shop_id, len(coverage), len(data.active_employees))
            return []

        scoped = replace(data, coverage=coverage)
        slots = expand_slots(coverage)
        target = max(1, min(MAX_OPTION_COUNT, data.constraints.requested_option_count))

        candidates: List[ScheduleOption] = []
        seen = set()
        for index, strategy in enumerate(self.strategies):
            for attempt in range(self.attempts_per_strategy):
                seed = derive_seed(index, attempt, self.base_seed)
                option = self.run_strategy(scoped, strategy, slots, seed, shuffle=attempt > 0)
                if not option.shifts or option.signature in seen:
                    continue
                seen.add(option.signature)
                candidates.append(option)
                logger.debug("%s attempt %d: score %d, %d warnings",
                             strategy.key, attempt, option.score, option.warning_count)

        ranked = rank_options(candidates)[:target]
        logger.info("Generated %d options from %d distinct candidates (%d slots)",
                    len(ranked), len(candidates), len(slots))
        return [replace(option, name=option_label(rank, option.strategy)) for rank, option in enumerate(ranked)]


def generate_options(
    data: GenerationInput,
    attempts_per_strategy: int = 3,
    base_seed: int = 0,
) -> List[ScheduleOption]:
    """Convenience function to generate options with the default strategies."""
    return Orchestrator(attempts_per_strategy=attempts_per_strategy, base_seed=base_seed).generate(data)

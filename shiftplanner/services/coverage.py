"""Bucketized coverage accounting for heat maps and gap detection."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from shiftplanner.domain.drafts import (
    CoverageBucketState,
    CoverageEvaluation,
    DraftShift,
    ScheduleWarning,
    WarningKind,
)
from shiftplanner.domain.models import CoverageRequirement

from .timeplan import MINUTES_PER_DAY, SNAP_STEP, Weekday, day_name, snap, snap_and_clamp, time_label, week_anchor_date


def scope_requirements(
    requirements: Iterable[CoverageRequirement],
    shop_id: Optional[str],
    week_value: date | datetime | pd.Timestamp,
    tz: str,
) -> List[CoverageRequirement]:
    """Keep requirements for the shop whose normalized week anchor matches, ordered by day/start/end."""
    anchor = week_anchor_date(week_value, tz)
    scoped = [
        r for r in requirements
        if (shop_id is None or r.shop_id == shop_id) and week_anchor_date(r.week_start, tz) == anchor
    ]
    return sorted(scoped, key=lambda r: (r.day_of_week, r.start_minutes, r.end_minutes))


def visible_window(start: int, end: int, step: int = SNAP_STEP) -> Tuple[int, int]:
    """Snap and clamp a visible window into the day, keeping at least one bucket."""
    window_start = snap_and_clamp(start, 0, MINUTES_PER_DAY - step, step)
    window_end = snap_and_clamp(end, window_start + step, MINUTES_PER_DAY, step)
    return window_start, window_end


def evaluate_coverage(
    requirements: Sequence[CoverageRequirement],
    shifts: Sequence[DraftShift],
    visible_start: int = 0,
    visible_end: int = MINUTES_PER_DAY,
    step: int = SNAP_STEP,
) -> CoverageEvaluation:
    """
    Count needed vs assigned headcount per (day, bucket) inside the visible window.

    Role matching is ignored here; it is a pure headcount/time pass. Open shifts
    (no employee) do not count as assigned.

    Args:
        requirements: Coverage requirements already scoped to the shop and week
        shifts: Draft shifts to account for
        visible_start: Window start in minutes since midnight
        visible_end: Window end in minutes since midnight
        step: Bucket size in minutes

    Returns:
        CoverageEvaluation with every bucket of all seven days
    """
    start, end = visible_window(visible_start, visible_end, step)

    needed: Dict[Tuple[int, int], int] = defaultdict(int)
    assigned: Dict[Tuple[int, int], int] = defaultdict(int)

    for req in requirements:
        block_start = max(start, snap(req.start_minutes, step))
        block_end = min(end, snap(req.end_minutes, step))
        for minute in range(block_start, block_end, step):
            needed[(req.day_of_week, minute)] += max(1, req.headcount)

    for shift in shifts:
        if shift.is_open:
            continue
        shift_start = max(start, snap(shift.start_minutes, step))
        shift_end = min(end, snap(shift.end_minutes, step))
        for minute in range(shift_start, shift_end, step):
            assigned[(shift.day_of_week, minute)] += 1

    buckets_by_day: Dict[int, List[CoverageBucketState]] = {}
    uncovered = 0
    over_covered = 0
    for day in Weekday:
        buckets = []
        for minute in range(start, end, step):
            bucket = CoverageBucketState(
                day_of_week=int(day),
                bucket_start_minutes=minute,
                needed=needed.get((int(day), minute), 0),
                assigned=assigned.get((int(day), minute), 0),
            )
            if bucket.delta < 0:
                uncovered += 1
            elif bucket.delta > 0:
                over_covered += 1
            buckets.append(bucket)
        buckets_by_day[int(day)] = buckets

    return CoverageEvaluation(
        buckets_by_day=buckets_by_day,
        uncovered_bucket_count=uncovered,
        over_covered_bucket_count=over_covered,
        window_start=start,
        window_end=end,
    )


def coverage_warnings(evaluation: CoverageEvaluation) -> List[ScheduleWarning]:
    """One gap warning per day, at the first uncovered bucket."""
    warnings: List[ScheduleWarning] = []
    for day in sorted(evaluation.buckets_by_day):
        gaps = evaluation.uncovered_buckets(day)
        if not gaps:
            continue
        first = gaps[0]
        warnings.append(
            ScheduleWarning.of(
                WarningKind.UNCOVERED,
                f"Coverage gap on {day_name(day)} around {time_label(first.bucket_start_minutes)}.",
                day_of_week=day,
                minute=first.bucket_start_minutes,
            )
        )
    return warnings

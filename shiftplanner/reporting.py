"""pandas summaries for the CLI: option ranking, hours per employee, warnings and the coverage heat map."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

import pandas as pd

from shiftplanner.domain.drafts import CoverageEvaluation, DraftShift, ScheduleOption, ScheduleWarning
from shiftplanner.domain.models import Employee
from shiftplanner.services.conflicts import employee_label
from shiftplanner.services.timeplan import day_name, time_label


def options_frame(options: Sequence[ScheduleOption]) -> pd.DataFrame:
    rows = [
        {
            "rank": rank + 1,
            "name": option.name,
            "score": option.score,
            "warnings": option.warning_count,
            "critical": option.critical_count,
            "shifts": option.total_shift_count,
            "hours": round(option.total_hours, 2),
            "seed": option.seed,
        }
        for rank, option in enumerate(options)
    ]
    return pd.DataFrame(rows, columns=["rank", "name", "score", "warnings", "critical", "shifts", "hours", "seed"])


def shifts_frame(
    shifts: Sequence[DraftShift],
    employees_by_id: Optional[Mapping[int, Employee]] = None,
) -> pd.DataFrame:
    df = pd.DataFrame(
        [
            {
                "day": day_name(s.day_of_week),
                "day_of_week": s.day_of_week,
                "start": time_label(s.start_minutes),
                "end": time_label(s.end_minutes),
                "start_minutes": s.start_minutes,
                "employee": employee_label(s.employee_id, employees_by_id),
                "hours": s.duration_minutes / 60.0,
            }
            for s in shifts
        ],
        columns=["day", "day_of_week", "start", "end", "start_minutes", "employee", "hours"],
    )
    return df.sort_values(["day_of_week", "start_minutes", "employee"]).drop(columns="start_minutes").reset_index(drop=True)


def hours_frame(
    shifts: Sequence[DraftShift],
    employees_by_id: Optional[Mapping[int, Employee]] = None,
) -> pd.DataFrame:
    """Shift count and hours per assigned employee, busiest first."""
    assigned = [s for s in shifts if not s.is_open]
    df = pd.DataFrame(
        {
            "employee_id": [s.employee_id for s in assigned],
            "minutes": [s.duration_minutes for s in assigned],
        }
    )
    if df.empty:
        return pd.DataFrame(columns=["employee_id", "employee", "shifts", "hours"])
    summary = (
        df.groupby("employee_id")["minutes"]
        .agg(shifts="count", minutes="sum")
        .reset_index()
    )
    summary["hours"] = summary["minutes"] / 60.0
    summary["employee"] = summary["employee_id"].map(lambda emp_id: employee_label(emp_id, employees_by_id))
    summary = summary.sort_values(["hours", "employee_id"], ascending=[False, True]).reset_index(drop=True)
    return summary[["employee_id", "employee", "shifts", "hours"]]


def warnings_frame(warnings: Sequence[ScheduleWarning]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "severity": w.severity.name,
                "kind": w.kind.value,
                "day": day_name(w.day_of_week) if w.day_of_week is not None else "",
                "message": w.message,
            }
            for w in warnings
        ],
        columns=["severity", "kind", "day", "message"],
    )


def heatmap_frame(evaluation: CoverageEvaluation) -> pd.DataFrame:
    """Day x time grid of ``assigned - needed``; negative cells are gaps."""
    records = [
        {"time": time_label(b.bucket_start_minutes), "minute": b.bucket_start_minutes,
         "day": day_name(b.day_of_week), "delta": b.delta}
        for b in evaluation.buckets()
    ]
    if not records:
        return pd.DataFrame()
    df = pd.DataFrame(records)
    grid = df.pivot_table(index=["minute", "time"], columns="day", values="delta", aggfunc="sum", sort=False)
    day_order = [day_name(day) for day in sorted(evaluation.buckets_by_day)]
    grid = grid.reindex(columns=day_order)
    grid.index = grid.index.droplevel("minute")
    grid.columns.name = None
    return grid.astype(int)

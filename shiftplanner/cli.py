"""Command-line interface for the shift planner."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List

import pandas as pd
from sqlalchemy.orm import Session

from shiftplanner.config import PlannerConfig, load_config
from shiftplanner.domain.db import get_session, init_database
from shiftplanner.domain.models import CoverageRequirement, Employee, PlannedShift
from shiftplanner.domain.repositories import CoverageRepository, EmployeeRepository
from shiftplanner.engine import GenerationInput, Orchestrator
from shiftplanner.reporting import heatmap_frame, hours_frame, options_frame, shifts_frame, warnings_frame
from shiftplanner.services.availability import AvailabilityContext, load_availability_context
from shiftplanner.services.coverage import evaluate_coverage
from shiftplanner.services.publishing import (
    load_reference_shifts,
    load_week_drafts,
    publish_month,
    publish_week,
)
from shiftplanner.services.timeplan import week_anchor_date
from shiftplanner.services.validation import ValidationInput, sort_warnings, validate_schedule


@dataclass
class WeekData:
    """Everything the scheduling services need for one shop and week, loaded once."""

    week_start: date
    employees: List[Employee]
    coverage: List[CoverageRequirement]
    availability: AvailabilityContext
    existing_shifts: List[PlannedShift]

    @property
    def employees_by_id(self) -> Dict[int, Employee]:
        return {emp.employee_id: emp for emp in self.employees}


def _load_week(session: Session, cfg: PlannerConfig, week: str) -> WeekData:
    anchor = week_anchor_date(pd.Timestamp(week), cfg.timezone)
    return WeekData(
        week_start=anchor,
        employees=EmployeeRepository.get_all(session),
        coverage=CoverageRepository.get_for_week(session, cfg.shop_id, anchor),
        availability=load_availability_context(session, cfg.shop_id, anchor, cfg.timezone),
        existing_shifts=load_reference_shifts(session, cfg.shop_id, anchor, cfg.timezone),
    )


def _session_for(args: argparse.Namespace, cfg: PlannerConfig) -> Session:
    return get_session(args.db or cfg.database_url)


def _cmd_init_db(args: argparse.Namespace) -> None:
    """Initialize the database."""
    cfg = load_config(args.config)
    db_url = args.db or cfg.database_url
    init_database(db_url, reset=args.reset)
    print(f"[OK] Database {'reset' if args.reset else 'initialized'}: {db_url}")


def _cmd_generate(args: argparse.Namespace) -> None:
    """Generate ranked schedule options for a week, optionally publishing one."""
    cfg = load_config(args.config)
    session = _session_for(args, cfg)

    try:
        data = _load_week(session, cfg, args.week)
        print(f"[INFO] {cfg.shop_id} week of {data.week_start}: "
              f"{len(data.coverage)} requirements, {len(data.employees)} employees")

        orchestrator = Orchestrator(
            attempts_per_strategy=cfg.generation.attempts_per_strategy,
            base_seed=cfg.generation.base_seed if args.seed is None else args.seed,
        )
        options = orchestrator.generate(
            GenerationInput(
                shop_id=cfg.shop_id,
                week_start=data.week_start,
                tz=cfg.timezone,
                coverage=data.coverage,
                employees=data.employees,
                availability=data.availability,
                existing_shifts=data.existing_shifts,
                constraints=cfg.constraints,
                visible_start_minutes=cfg.generation.visible_start_minutes,
                visible_end_minutes=cfg.generation.visible_end_minutes,
            )
        )
        if not options:
            print("[INFO] Nothing to schedule (no coverage or no active employees)")
            session.close()
            return

        print(options_frame(options).to_string(index=False))

        if args.publish is not None:
            if not 1 <= args.publish <= len(options):
                raise ValueError(f"--publish must be between 1 and {len(options)}")
            chosen = options[args.publish - 1]
            print(f"\n{shifts_frame(chosen.shifts, data.employees_by_id).to_string(index=False)}")
            publish = publish_month if args.month else publish_week
            count = publish(session, list(chosen.shifts), cfg.shop_id, data.week_start, cfg.timezone,
                            data.employees_by_id)
            print(f"[OK] Published {count} shifts from {chosen.name}")

        session.close()

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Generation failed: {e}")
        raise


def _cmd_validate(args: argparse.Namespace) -> None:
    """Validate the persisted schedule of a week."""
    cfg = load_config(args.config)
    session = _session_for(args, cfg)

    try:
        data = _load_week(session, cfg, args.week)
        shifts = load_week_drafts(session, cfg.shop_id, data.week_start, cfg.timezone)
        warnings = sort_warnings(
            validate_schedule(
                ValidationInput(
                    shop_id=cfg.shop_id,
                    week_start=data.week_start,
                    tz=cfg.timezone,
                    shifts=shifts,
                    coverage=data.coverage,
                    employees_by_id=data.employees_by_id,
                    availability=data.availability,
                    existing_shifts=data.existing_shifts,
                    constraints=cfg.constraints,
                )
            )
        )

        print(hours_frame(shifts, data.employees_by_id).to_string(index=False))
        if args.heatmap:
            evaluation = evaluate_coverage(
                data.coverage, shifts, cfg.board.visible_start_minutes, cfg.board.visible_end_minutes
            )
            print(f"\n{heatmap_frame(evaluation).to_string()}")

        session.close()
        if warnings:
            print(f"\n{warnings_frame(warnings).to_string(index=False)}")
            print(f"[INFO] {len(warnings)} warnings for week of {data.week_start}")
        else:
            print(f"[OK] Validation passed for week of {data.week_start}")

    except Exception as e:
        session.close()
        print(f"[ERROR] Validation failed: {e}")
        raise


def _cmd_publish(args: argparse.Namespace) -> None:
    """Republish a persisted week, or repeat it across its month."""
    cfg = load_config(args.config)
    session = _session_for(args, cfg)

    try:
        data = _load_week(session, cfg, args.week)
        shifts = load_week_drafts(session, cfg.shop_id, data.week_start, cfg.timezone)
        publish = publish_month if args.month else publish_week
        count = publish(session, shifts, cfg.shop_id, data.week_start, cfg.timezone, data.employees_by_id)
        session.close()
        scope = "month" if args.month else "week"
        print(f"[OK] Published {count} shifts for the {scope} of {data.week_start}")

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Publish failed: {e}")
        raise


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="shiftplanner",
        description="Weekly shift planner: generate, validate and publish schedules",
    )

    # Global options
    parser.add_argument("--db", help="Database URL (default: from config, else sqlite:///shiftplanner.db)")
    parser.add_argument("--config", help="Path to config YAML or JSON (default: built-in defaults)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    # init-db command
    init = sub.add_parser("init-db", help="Initialize database")
    init.add_argument("--reset", action="store_true", help="Drop all tables first (deletes all data)")
    init.set_defaults(func=_cmd_init_db)

    # generate command
    gen = sub.add_parser("generate", help="Generate schedule options for a week")
    gen.add_argument("--week", required=True, help="Any date inside the week (e.g., 2025-03-03)")
    gen.add_argument("--seed", type=int, help="Override the configured base seed")
    gen.add_argument("--publish", type=int, metavar="RANK", help="Publish the option with this rank (1 = best)")
    gen.add_argument("--month", action="store_true", help="With --publish: repeat the week across its month")
    gen.set_defaults(func=_cmd_generate)

    # validate command
    val = sub.add_parser("validate", help="Validate the persisted schedule for a week")
    val.add_argument("--week", required=True, help="Any date inside the week")
    val.add_argument("--heatmap", action="store_true", help="Print the coverage heat map")
    val.set_defaults(func=_cmd_validate)

    # publish command
    pub = sub.add_parser("publish", help="Republish a persisted week")
    pub.add_argument("--week", required=True, help="Any date inside the week")
    pub.add_argument("--month", action="store_true", help="Repeat the week across its month")
    pub.set_defaults(func=_cmd_publish)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()

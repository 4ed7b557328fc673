"""Configuration loading for the scheduling engine (YAML or JSON)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

import yaml


MAX_OPTION_COUNT = 5


@dataclass(frozen=True)
class SchedulingConstraints:
    """Business rules shared by generation, validation and the board."""

    max_hours_per_employee_per_week: float = 40.0
    max_shift_length_hours: float = 8.0
    min_rest_hours_between_shifts: float = 10.0
    prefer_consistent_start_times: bool = True
    fairness_weight: float = 1.0
    requested_option_count: int = MAX_OPTION_COUNT

    def __post_init__(self) -> None:
        # frozen dataclass: clamp through object.__setattr__
        clamped = max(1, min(MAX_OPTION_COUNT, int(self.requested_option_count)))
        object.__setattr__(self, "requested_option_count", clamped)
        if self.max_hours_per_employee_per_week <= 0:
            raise ValueError("max_hours_per_employee_per_week must be positive")
        if self.max_shift_length_hours <= 0:
            raise ValueError("max_shift_length_hours must be positive")
        if self.min_rest_hours_between_shifts < 0:
            raise ValueError("min_rest_hours_between_shifts cannot be negative")


@dataclass(frozen=True)
class BoardSettings:
    visible_start_minutes: int = 6 * 60 + 30
    visible_end_minutes: int = 18 * 60 + 30
    snap_step_minutes: int = 15
    minimum_shift_minutes: int = 30
    max_undo_depth: int = 80
    pixels_per_minute: float = 1.4
    day_column_width: float = 180.0
    day_change_threshold: float = 0.35
    default_shift_minutes: int = 4 * 60

    def __post_init__(self) -> None:
        if self.visible_end_minutes <= self.visible_start_minutes:
            raise ValueError("visible_end_minutes must be after visible_start_minutes")
        if self.snap_step_minutes <= 0:
            raise ValueError("snap_step_minutes must be positive")


@dataclass(frozen=True)
class GenerationSettings:
    attempts_per_strategy: int = 3
    base_seed: int = 0
    visible_start_minutes: int = 0
    visible_end_minutes: int = 24 * 60


@dataclass(frozen=True)
class PlannerConfig:
    shop_id: str = "default-shop"
    timezone: str = "UTC"
    database_url: str = "sqlite:///shiftplanner.db"
    constraints: SchedulingConstraints = field(default_factory=SchedulingConstraints)
    board: BoardSettings = field(default_factory=BoardSettings)
    generation: GenerationSettings = field(default_factory=GenerationSettings)


_SECTIONS = {
    "constraints": SchedulingConstraints,
    "board": BoardSettings,
    "generation": GenerationSettings,
}


def _build_section(cls, raw: Dict[str, Any] | None, section: str):
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config section '{section}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown keys in '{section}': {', '.join(unknown)}")
    return cls(**raw)


def config_from_dict(data: Dict[str, Any] | None) -> PlannerConfig:
    """Build a PlannerConfig from a parsed mapping, rejecting unknown keys."""
    data = dict(data or {})
    kwargs: Dict[str, Any] = {}
    for section, cls in _SECTIONS.items():
        kwargs[section] = _build_section(cls, data.pop(section, None), section)

    top_level = {"shop_id", "timezone", "database_url"}
    unknown = sorted(set(data) - top_level)
    if unknown:
        raise ValueError(f"Unknown top-level config keys: {', '.join(unknown)}")
    for key in top_level:
        if key in data:
            kwargs[key] = str(data[key])
    return PlannerConfig(**kwargs)


def load_config(path: str | Path | None = None) -> PlannerConfig:
    """
    Load planner configuration from a YAML or JSON file.

    Args:
        path: Config file path. ``None`` returns the defaults.

    Returns:
        PlannerConfig with every section populated

    Raises:
        FileNotFoundError: If the path does not exist
        ValueError: If the file contains unknown keys or invalid values
    """
    if path is None:
        return PlannerConfig()
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    return config_from_dict(data)

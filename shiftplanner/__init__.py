"""Shift planner package: weekly shift scheduling for a shop.

Modules:
- config: load and validate configuration (YAML or JSON)
- domain: SQLAlchemy models, draft value types and repositories
- services: time primitives, availability, coverage, conflicts, validation, scoring, publishing
- engine: multi-strategy seeded draft generation
- board: interactive board state machine (drag, resize, copy/paste, undo)
- reporting: pandas summaries of options, hours and coverage
- cli: command-line interface entrypoints
"""

__version__ = "0.1.0"

__all__ = [
    "config",
    "domain",
    "services",
    "engine",
    "board",
    "reporting",
    "cli",
]

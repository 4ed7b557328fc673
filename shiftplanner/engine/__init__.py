"""Draft generation engine with pluggable strategies."""

from .base import BaseStrategy, GenerationInput, Slot, derive_seed, expand_slots
from .condense import condense_shifts
from .orchestrator import Orchestrator, generate_options, rank_options
from .strategies import Balanced, ConsistencyFirst, FairnessFirst, FewestShifts, StrictAvailability, default_strategies

__all__ = [
    "BaseStrategy",
    "GenerationInput",
    "Slot",
    "derive_seed",
    "expand_slots",
    "condense_shifts",
    "Orchestrator",
    "generate_options",
    "rank_options",
    "FairnessFirst",
    "ConsistencyFirst",
    "FewestShifts",
    "StrictAvailability",
    "Balanced",
    "default_strategies",
]

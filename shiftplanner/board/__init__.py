"""Interactive board state machine."""

from .state import BoardContext, BoardFeedback, Interaction, InteractionMode, ScheduleBoard, recalculate

__all__ = [
    "BoardContext",
    "BoardFeedback",
    "Interaction",
    "InteractionMode",
    "ScheduleBoard",
    "recalculate",
]

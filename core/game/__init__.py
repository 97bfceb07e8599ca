"""Round engine and state management."""

from core.game.events import GameEvent, EventType
from core.game.state import RoundState
from core.game.outcome import Outcome, OutcomeReason, RoundResult
from core.game.engine import RoundController

__all__ = [
    "GameEvent",
    "EventType",
    "RoundState",
    "Outcome",
    "OutcomeReason",
    "RoundResult",
    "RoundController",
]

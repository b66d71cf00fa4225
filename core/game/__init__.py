"""Round engine and state management."""

from core.game.events import GameEvent, EventType
from core.game.state import RoundPhase
from core.game.round import Round, RoundView
from core.game.engine import BlackjackGame

__all__ = [
    "GameEvent",
    "EventType",
    "RoundPhase",
    "Round",
    "RoundView",
    "BlackjackGame",
]

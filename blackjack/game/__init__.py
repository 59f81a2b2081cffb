"""Round engine and state management."""

from blackjack.game.events import EventEmitter, EventType, GameEvent
from blackjack.game.state import RoundPhase, RoundStateMachine
from blackjack.game.snapshot import GameSnapshot, RoundResult
from blackjack.game.engine import MAX_HANDS, RoundEngine

__all__ = [
    "EventEmitter",
    "EventType",
    "GameEvent",
    "RoundPhase",
    "RoundStateMachine",
    "GameSnapshot",
    "RoundResult",
    "MAX_HANDS",
    "RoundEngine",
]

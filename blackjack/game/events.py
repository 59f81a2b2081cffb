"""Game events and observer lists."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

Unsubscribe = Callable[[], None]


class CallbackList(Generic[F]):
    """
    Ordered list of observer callbacks.

    Callbacks run inline in subscription order. An exception raised by one
    callback is logged and does not stop the others.
    """

    def __init__(self, name: str = "subscriber") -> None:
        self._name = name
        self._callbacks: list[F] = []

    def subscribe(self, callback: F) -> Unsubscribe:
        """Register a callback and return a function that removes it."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def notify(self, *args: Any) -> None:
        for callback in list(self._callbacks):
            try:
                callback(*args)
            except Exception:
                logger.exception("Error in %s callback %r", self._name, callback)

    def clear(self) -> None:
        self._callbacks.clear()

    def __len__(self) -> int:
        return len(self._callbacks)


class EventType(Enum):
    """Types of game events."""

    # Round flow events
    ROUND_STARTED = auto()
    ROUND_ENDED = auto()
    PHASE_CHANGED = auto()

    # Betting events
    BET_PLACED = auto()
    BET_REMOVED = auto()

    # Card events
    CARD_DEALT = auto()
    SHOE_SHUFFLED = auto()

    # Player action events
    PLAYER_HIT = auto()
    PLAYER_STAND = auto()
    PLAYER_DOUBLE = auto()
    PLAYER_SPLIT = auto()

    # Insurance events
    INSURANCE_OFFERED = auto()
    INSURANCE_TAKEN = auto()
    INSURANCE_DECLINED = auto()
    INSURANCE_WINS = auto()
    INSURANCE_LOSES = auto()

    # Dealer events
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()
    DEALER_SKIPS = auto()

    # Outcome events
    PLAYER_BLACKJACK = auto()
    PLAYER_BUSTS = auto()
    PLAYER_WINS = auto()
    PLAYER_LOSES = auto()
    PUSH = auto()

    # Rejected operations
    INVALID_ACTION = auto()


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable game event.

    Events describe what happened during a round so a presentation layer
    can animate or announce it without diffing snapshots.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"


# Type alias for event handlers
EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Simple event emitter for game events.

    Allows subscribing to specific event types or all events.
    """

    def __init__(self, history_limit: int = 1000) -> None:
        """
        Initialize the event emitter.

        Args:
            history_limit: Number of past events retained in ``history``
        """
        self._handlers: dict[EventType | None, CallbackList[EventHandler]] = {}
        self._event_history: list[GameEvent] = []
        self._history_limit = history_limit

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> Unsubscribe:
        """
        Subscribe to events.

        Args:
            handler: Function to call when event occurs
            event_type: Specific event type to subscribe to, or None for all events

        Returns:
            A function that removes the subscription
        """
        if event_type not in self._handlers:
            name = event_type.name if event_type else "event"
            self._handlers[event_type] = CallbackList(name)
        return self._handlers[event_type].subscribe(handler)

    def emit(self, event: GameEvent) -> None:
        """
        Emit an event to all subscribers.

        Args:
            event: The event to emit
        """
        self._event_history.append(event)
        if len(self._event_history) > self._history_limit:
            del self._event_history[: -self._history_limit]

        # Call type-specific handlers
        if event.event_type in self._handlers:
            self._handlers[event.event_type].notify(event)

        # Call catch-all handlers
        if None in self._handlers:
            self._handlers[None].notify(event)

    def emit_new(
        self,
        event_type: EventType,
        **data: Any,
    ) -> GameEvent:
        """
        Create and emit a new event.

        Args:
            event_type: Type of event
            **data: Event data

        Returns:
            The created event
        """
        event = GameEvent(event_type=event_type, data=data)
        self.emit(event)
        return event

    @property
    def history(self) -> list[GameEvent]:
        """Return the event history."""
        return self._event_history.copy()

    def clear_history(self) -> None:
        """Clear the event history."""
        self._event_history.clear()

"""Round phases and the state machine that sequences them."""

import logging
from enum import Enum
from typing import Callable

from transitions import EventData, Machine

from blackjack.errors import InvalidTransitionError
from blackjack.game.events import CallbackList, Unsubscribe

logger = logging.getLogger(__name__)


class RoundPhase(str, Enum):
    """
    Round state machine states.

    Flow: BETTING → DEALING → [INSURANCE_CHECK →] PLAYER_TURN → DEALER_TURN
    → RESOLUTION → GAME_OVER → BETTING
    """

    # Stakes are placed
    BETTING = "betting"

    # Cards being dealt
    DEALING = "dealing"

    # Dealer shows an Ace
    INSURANCE_CHECK = "insurance_check"

    # Player actions
    PLAYER_TURN = "player_turn"

    # Dealer plays
    DEALER_TURN = "dealer_turn"

    # Determining winners
    RESOLUTION = "resolution"

    # Round settled, ready for the next one
    GAME_OVER = "game_over"

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


# Valid state transitions
VALID_TRANSITIONS: dict[RoundPhase, list[RoundPhase]] = {
    RoundPhase.BETTING: [RoundPhase.DEALING],
    RoundPhase.DEALING: [RoundPhase.INSURANCE_CHECK, RoundPhase.PLAYER_TURN],
    RoundPhase.INSURANCE_CHECK: [RoundPhase.PLAYER_TURN],
    RoundPhase.PLAYER_TURN: [RoundPhase.DEALER_TURN],
    RoundPhase.DEALER_TURN: [RoundPhase.RESOLUTION],
    RoundPhase.RESOLUTION: [RoundPhase.GAME_OVER],
    RoundPhase.GAME_OVER: [RoundPhase.BETTING],
}

# Player-facing actions permitted in each phase
ALLOWED_ACTIONS: dict[RoundPhase, frozenset[str]] = {
    RoundPhase.BETTING: frozenset({"placeBet", "removeBet", "selectHands"}),
    RoundPhase.DEALING: frozenset(),
    RoundPhase.INSURANCE_CHECK: frozenset({"acceptInsurance", "declineInsurance"}),
    RoundPhase.PLAYER_TURN: frozenset({"hit", "stand", "double", "split"}),
    RoundPhase.DEALER_TURN: frozenset(),
    RoundPhase.RESOLUTION: frozenset(),
    RoundPhase.GAME_OVER: frozenset(),
}

PhaseListener = Callable[[RoundPhase, RoundPhase], None]


def is_valid_transition(from_phase: RoundPhase, to_phase: RoundPhase) -> bool:
    """
    Check if a phase transition is valid.

    Args:
        from_phase: Current phase
        to_phase: Desired phase

    Returns:
        True if the transition is allowed
    """
    return to_phase in VALID_TRANSITIONS.get(from_phase, [])


def _coerce_phase(value: RoundPhase | str) -> RoundPhase | None:
    try:
        return RoundPhase(value)
    except ValueError:
        return None


def _trigger_name(phase: RoundPhase) -> str:
    return f"enter_{phase.value}"


class RoundStateMachine:
    """
    Explicit finite-state machine over the seven round phases.

    The phase is the single source of truth for which engine operations are
    legal. Subscribers are called with ``(new_phase, old_phase)`` after every
    change.
    """

    # State machine transitions
    TRANSITIONS = [
        {"trigger": _trigger_name(dest), "source": source.value, "dest": dest.value}
        for source, targets in VALID_TRANSITIONS.items()
        for dest in targets
    ]

    def __init__(self) -> None:
        self._listeners: CallbackList[PhaseListener] = CallbackList("phase change")
        self.machine = Machine(
            model=self,
            states=[phase.value for phase in RoundPhase],
            transitions=self.TRANSITIONS,
            initial=RoundPhase.BETTING.value,
            auto_transitions=False,
            send_event=True,
            after_state_change="_on_phase_change",
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> RoundPhase:
        """Get current phase as enum."""
        return RoundPhase(self._machine_state)  # type: ignore[attr-defined]

    def get_phase(self) -> RoundPhase:
        return self.phase

    def can_transition(self, target: RoundPhase | str) -> bool:
        """Check whether ``target`` is reachable from the current phase."""
        phase = _coerce_phase(target)
        if phase is None or phase == self.phase:
            return False
        return is_valid_transition(self.phase, phase)

    def transition(self, target: RoundPhase | str) -> RoundPhase:
        """
        Move to ``target`` and notify subscribers.

        Raises:
            InvalidTransitionError: If target is unknown or unreachable
        """
        phase = _coerce_phase(target)
        if phase is None:
            raise InvalidTransitionError(
                f'Invalid transition: "{target}" is not a round phase. '
                f"Current phase: {self.phase.value}"
            )
        if not self.can_transition(phase):
            valid = ", ".join(p.value for p in VALID_TRANSITIONS[self.phase]) or "none"
            raise InvalidTransitionError(
                f'Invalid transition from "{self.phase.value}" to "{phase.value}". '
                f"Valid transitions from {self.phase.value}: {valid}"
            )

        self.trigger(_trigger_name(phase))  # type: ignore[attr-defined]
        return self.phase

    def _on_phase_change(self, event: EventData) -> None:
        old_phase = RoundPhase(event.transition.source)
        new_phase = RoundPhase(event.transition.dest)
        logger.debug("Phase %s -> %s", old_phase.value, new_phase.value)
        self._listeners.notify(new_phase, old_phase)

    def is_action_allowed(self, action: str) -> bool:
        """Check whether a player-facing action is permitted in this phase."""
        if not isinstance(action, str) or not action:
            return False
        return action in ALLOWED_ACTIONS[self.phase]

    def subscribe(self, callback: PhaseListener) -> Unsubscribe:
        """Register a phase-change callback; returns an unsubscribe function."""
        return self._listeners.subscribe(callback)

    def reset(self) -> None:
        """Force the machine back to BETTING, notifying only on a real change."""
        previous = self.phase
        if previous == RoundPhase.BETTING:
            return
        self.machine.set_state(RoundPhase.BETTING.value, model=self)
        logger.debug("Phase %s -> %s (reset)", previous.value, RoundPhase.BETTING.value)
        self._listeners.notify(RoundPhase.BETTING, previous)

    def restore(self, phase: RoundPhase | str) -> None:
        """Set the phase directly without notifying, e.g. from a saved snapshot."""
        target = _coerce_phase(phase)
        if target is None:
            raise InvalidTransitionError(f'"{phase}" is not a round phase')
        self.machine.set_state(target.value, model=self)

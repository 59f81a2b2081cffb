"""Tests for round phases and the state machine."""

import pytest

from blackjack.errors import InvalidTransitionError
from blackjack.game.state import (
    VALID_TRANSITIONS,
    RoundPhase,
    RoundStateMachine,
    is_valid_transition,
)


@pytest.fixture
def machine():
    return RoundStateMachine()


def advance(machine, *phases):
    for phase in phases:
        machine.transition(phase)


class TestTransitions:
    """Tests for the transition table."""

    def test_starts_in_betting(self, machine):
        assert machine.phase == RoundPhase.BETTING
        assert machine.get_phase() == RoundPhase.BETTING

    def test_full_round(self, machine):
        advance(
            machine,
            RoundPhase.DEALING,
            RoundPhase.INSURANCE_CHECK,
            RoundPhase.PLAYER_TURN,
            RoundPhase.DEALER_TURN,
            RoundPhase.RESOLUTION,
            RoundPhase.GAME_OVER,
            RoundPhase.BETTING,
        )
        assert machine.phase == RoundPhase.BETTING

    def test_accepts_phase_values(self, machine):
        assert machine.transition("dealing") == RoundPhase.DEALING

    @pytest.mark.parametrize("source", list(RoundPhase))
    def test_table_is_the_only_way(self, source):
        for target in RoundPhase:
            expected = target in VALID_TRANSITIONS[source]
            assert is_valid_transition(source, target) == expected

    def test_invalid_transition_raises(self, machine):
        with pytest.raises(InvalidTransitionError, match="Valid transitions from betting: dealing"):
            machine.transition(RoundPhase.PLAYER_TURN)
        assert machine.phase == RoundPhase.BETTING

    def test_unknown_phase_raises(self, machine):
        with pytest.raises(InvalidTransitionError, match="not a round phase"):
            machine.transition("shuffling")

    def test_invalid_transition_is_value_error(self, machine):
        with pytest.raises(ValueError):
            machine.transition(RoundPhase.GAME_OVER)

    def test_can_transition(self, machine):
        assert machine.can_transition(RoundPhase.DEALING)
        assert not machine.can_transition(RoundPhase.BETTING)
        assert not machine.can_transition(RoundPhase.RESOLUTION)
        assert not machine.can_transition("bogus")


class TestSubscribers:
    """Tests for phase change notification."""

    def test_notified_with_new_and_old(self, machine):
        seen = []
        machine.subscribe(lambda new, old: seen.append((new, old)))
        machine.transition(RoundPhase.DEALING)
        assert seen == [(RoundPhase.DEALING, RoundPhase.BETTING)]

    def test_unsubscribe(self, machine):
        seen = []
        unsubscribe = machine.subscribe(lambda new, old: seen.append(new))
        unsubscribe()
        machine.transition(RoundPhase.DEALING)
        assert seen == []

    def test_failing_subscriber_is_isolated(self, machine):
        seen = []

        def broken(new, old):
            raise RuntimeError("boom")

        machine.subscribe(broken)
        machine.subscribe(lambda new, old: seen.append(new))
        machine.transition(RoundPhase.DEALING)
        assert seen == [RoundPhase.DEALING]
        assert machine.phase == RoundPhase.DEALING


class TestResetAndRestore:
    """Tests for forcing the phase."""

    def test_reset_from_any_phase(self, machine):
        advance(machine, RoundPhase.DEALING, RoundPhase.PLAYER_TURN)
        seen = []
        machine.subscribe(lambda new, old: seen.append((new, old)))
        machine.reset()
        assert machine.phase == RoundPhase.BETTING
        assert seen == [(RoundPhase.BETTING, RoundPhase.PLAYER_TURN)]

    def test_reset_in_betting_is_silent(self, machine):
        seen = []
        machine.subscribe(lambda new, old: seen.append(new))
        machine.reset()
        assert seen == []

    def test_restore_is_silent(self, machine):
        seen = []
        machine.subscribe(lambda new, old: seen.append(new))
        machine.restore(RoundPhase.DEALER_TURN)
        assert machine.phase == RoundPhase.DEALER_TURN
        assert seen == []
        machine.transition(RoundPhase.RESOLUTION)
        assert machine.phase == RoundPhase.RESOLUTION


class TestAllowedActions:
    """Tests for the per-phase action whitelist."""

    def test_betting_actions(self, machine):
        assert machine.is_action_allowed("placeBet")
        assert machine.is_action_allowed("removeBet")
        assert machine.is_action_allowed("selectHands")
        assert not machine.is_action_allowed("hit")

    def test_player_turn_actions(self, machine):
        advance(machine, RoundPhase.DEALING, RoundPhase.PLAYER_TURN)
        for action in ("hit", "stand", "double", "split"):
            assert machine.is_action_allowed(action)
        assert not machine.is_action_allowed("placeBet")

    def test_insurance_actions(self, machine):
        advance(machine, RoundPhase.DEALING, RoundPhase.INSURANCE_CHECK)
        assert machine.is_action_allowed("acceptInsurance")
        assert machine.is_action_allowed("declineInsurance")

    def test_invalid_action_names(self, machine):
        assert not machine.is_action_allowed("")
        assert not machine.is_action_allowed(None)

    def test_phase_str(self):
        assert str(RoundPhase.PLAYER_TURN) == "Player Turn"

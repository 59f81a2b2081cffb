"""Tests for balance and stake bookkeeping."""

from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from blackjack.ledger import Ledger, to_decimal

stakes = st.integers(min_value=10, max_value=500)


class TestPlaceBet:
    """Tests for stake validation and deduction."""

    def test_place_bet_deducts(self, ledger):
        assert ledger.place_bet(100)
        assert ledger.balance == Decimal("900")
        assert ledger.bets == [Decimal("100")]

    def test_rejects_below_minimum(self, ledger):
        assert not ledger.place_bet(5)
        assert ledger.balance == Decimal("1000")
        assert ledger.bets == []

    def test_rejects_above_maximum(self, ledger):
        assert not ledger.place_bet(501)

    def test_rejects_non_positive(self, ledger):
        assert not ledger.can_bet(0)
        assert not ledger.can_bet(-10)

    def test_rejects_insufficient_balance(self):
        ledger = Ledger(50, min_bet=10, max_bet=500)
        assert not ledger.place_bet(100)
        assert ledger.place_bet(50)
        assert ledger.balance == Decimal("0")

    def test_side_stake_obeys_limits(self, ledger):
        """Half of a minimum bet is still below the table minimum."""
        ledger.place_bet(10)
        assert not ledger.place_bet(5)
        assert ledger.balance == Decimal("990")
        assert ledger.bets == [Decimal("10")]

    def test_bets_returns_copy(self, ledger):
        ledger.place_bet(100)
        ledger.bets.append(Decimal("1"))
        assert ledger.bets_total() == Decimal("100")

    def test_cancel_bet_refunds(self, ledger):
        ledger.place_bet(100)
        ledger.place_bet(50)
        assert ledger.cancel_bet(100)
        assert ledger.balance == Decimal("950")
        assert ledger.bets == [Decimal("50")]
        assert not ledger.cancel_bet(100)


class TestPayout:
    """Tests for crediting winnings."""

    @given(stakes)
    def test_win_nets_the_stake(self, amount):
        ledger = Ledger(1000, 10, 500)
        ledger.place_bet(amount)
        assert ledger.payout(amount, 2) == Decimal(1000 + amount)

    @given(stakes)
    def test_push_restores_balance(self, amount):
        ledger = Ledger(1000, 10, 500)
        ledger.place_bet(amount)
        assert ledger.payout(amount, 1) == Decimal("1000")

    @given(stakes)
    def test_loss_leaves_post_bet_balance(self, amount):
        ledger = Ledger(1000, 10, 500)
        ledger.place_bet(amount)
        assert ledger.payout(amount, 0) == Decimal(1000 - amount)

    def test_blackjack_pays_three_to_two(self, ledger):
        ledger.place_bet(100)
        assert ledger.payout(100, 2.5) == Decimal("1150")

    def test_odd_stake_blackjack_keeps_cents(self, ledger):
        ledger.place_bet(15)
        assert ledger.payout(15, Decimal("2.5")) == Decimal("1022.5")


class TestReset:
    """Tests for resetting and restoring the ledger."""

    def test_reset(self, ledger):
        ledger.place_bet(100)
        ledger.reset()
        assert ledger.balance == Decimal("1000")
        assert ledger.bets == []

    def test_reset_with_new_balance(self, ledger):
        ledger.reset(250)
        assert ledger.balance == Decimal("250")
        assert ledger.initial_balance == Decimal("250")

    def test_clear_bets_keeps_balance(self, ledger):
        ledger.place_bet(100)
        ledger.clear_bets()
        assert ledger.balance == Decimal("900")
        assert ledger.bets_total() == Decimal("0")

    def test_restore_does_not_deduct(self, ledger):
        ledger.restore(Decimal("700"), [Decimal("100"), Decimal("50")])
        assert ledger.balance == Decimal("700")
        assert ledger.bets_total() == Decimal("150")

    def test_restore_keeps_starting_balance(self, ledger):
        ledger.restore(Decimal("250"), [Decimal("100")])
        assert ledger.initial_balance == Decimal("1000")
        ledger.reset()
        assert ledger.balance == Decimal("1000")
        assert ledger.bets == []


def test_to_decimal_avoids_float_artifacts():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal("12.50") == Decimal("12.50")

"""Pytest fixtures for blackjack engine tests."""

from decimal import Decimal
from random import Random

import pytest
from hypothesis import strategies as st

from blackjack.cards import Card, Rank, Shoe, Suit
from blackjack.game import RoundEngine
from blackjack.hand import Hand
from blackjack.ledger import Ledger
from blackjack.rng import SecureShuffler
from blackjack.rules import TableRules


def cards(*specs: str) -> list[Card]:
    """Build cards from strings like 'AS', '10H', 'KD'."""
    return [Card.from_string(spec) for spec in specs]


def make_hand(*specs: str) -> Hand:
    return Hand(cards(*specs))


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shuffler(rng):
    """Shuffler fed from the seeded generator."""
    return SecureShuffler(entropy=rng.getrandbits)


@pytest.fixture
def shoe(shuffler):
    """A populated, unshuffled single-deck shoe."""
    return Shoe(shuffler).populate(1)


@pytest.fixture
def empty_hand():
    """An empty hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return make_hand("AS", "KH")


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return make_hand("AS", "6H")


@pytest.fixture
def hard_17_hand():
    """A hard 17 hand (10-7)."""
    return make_hand("10S", "7H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return make_hand("10S", "6H")


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s hand."""
    return make_hand("8S", "8H")


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return make_hand("10S", "6H", "KC")


@pytest.fixture
def rules():
    """Default table rules with a 10-500 spread."""
    return TableRules(min_bet=10, max_bet=500)


@pytest.fixture
def ledger():
    """A ledger with 1000 and a 10-500 spread."""
    return Ledger(Decimal("1000"), min_bet=10, max_bet=500)


@pytest.fixture
def engine(rules, shuffler):
    """A new engine instance."""
    return RoundEngine(rules=rules, initial_balance=Decimal("1000"), shuffler=shuffler)


@pytest.fixture
def make_engine(shuffler):
    """
    Factory for engines whose next cards are known.

    Cards are listed in deal order. With one hand the opening deal runs
    player, dealer hole, player, dealer up card.
    """

    def factory(*specs: str, balance: int = 1000, **rule_overrides) -> RoundEngine:
        table = TableRules(**{"min_bet": 10, "max_bet": 500, **rule_overrides})
        game = RoundEngine(rules=table, initial_balance=balance, shuffler=shuffler)
        game.shoe.stack(cards(*specs))
        return game

    return factory


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def hand_strategy(draw, min_cards=0, max_cards=8):
    """Generate a random hand."""
    return Hand(draw(st.lists(card_strategy(), min_size=min_cards, max_size=max_cards)))

"""Blackjack rules engine - 100% UI-agnostic."""

from blackjack.cards import Card, Shoe, Rank, Suit
from blackjack.dealer import DealerAction, DealerPolicy
from blackjack.errors import (
    BlackjackError,
    EmptyShoeError,
    InvalidTransitionError,
    NotPopulatedError,
)
from blackjack.hand import Hand, Outcome, PlayerHand
from blackjack.ledger import Ledger
from blackjack.rng import SecureShuffler
from blackjack.rules import TableRules

__all__ = [
    "Card",
    "Shoe",
    "Rank",
    "Suit",
    "DealerAction",
    "DealerPolicy",
    "BlackjackError",
    "EmptyShoeError",
    "InvalidTransitionError",
    "NotPopulatedError",
    "Hand",
    "Outcome",
    "PlayerHand",
    "Ledger",
    "SecureShuffler",
    "TableRules",
]

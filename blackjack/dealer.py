"""Dealer drawing policy."""

import logging
from enum import Enum
from typing import Callable

from blackjack.cards import Card
from blackjack.hand import Hand

logger = logging.getLogger(__name__)


class DealerAction(Enum):
    """Dealer decisions."""

    HIT = "hit"
    STAND = "stand"


class DealerPolicy:
    """
    Fixed house policy for the dealer's hand.

    The dealer draws to 16 and stands on hard 17 or more. Soft 17 is
    governed by ``hits_soft_17`` (H17 when True, S17 when False).
    """

    def __init__(self, hits_soft_17: bool = True) -> None:
        self.hits_soft_17 = hits_soft_17

    def should_hit(self, hand: Hand) -> bool:
        """Determine if the dealer should take another card."""
        if hand.is_bust:
            return False
        if hand.value <= 16:
            return True
        if hand.value == 17 and hand.is_soft and self.hits_soft_17:
            return True
        return False

    def get_action(self, hand: Hand) -> DealerAction:
        return DealerAction.HIT if self.should_hit(hand) else DealerAction.STAND

    def play_turn(self, hand: Hand, draw: Callable[[], Card]) -> Hand:
        """
        Draw cards into the hand until the policy stands.

        Args:
            hand: Dealer hand to complete
            draw: Zero-argument callable returning the next card, e.g. ``shoe.deal``

        Returns:
            The same hand, completed
        """
        while self.should_hit(hand):
            card = draw()
            hand.add_card(card)
            logger.debug("Dealer draws %s, now %d", card, hand.value)
        return hand

    def __repr__(self) -> str:
        return f"DealerPolicy(hits_soft_17={self.hits_soft_17})"

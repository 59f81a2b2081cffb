"""Hand evaluation for blackjack."""

from decimal import Decimal
from enum import Enum
from typing import Iterator

from blackjack.cards import Card


class Outcome(str, Enum):
    """Result of one player hand against the dealer."""

    WIN = "win"
    LOSE = "lose"
    PUSH = "push"
    BLACKJACK = "blackjack"


# Amount credited per unit staked; the stake was already deducted at placement
PAYOUT_MULTIPLIERS: dict[Outcome, Decimal] = {
    Outcome.WIN: Decimal("2.0"),
    Outcome.BLACKJACK: Decimal("2.5"),
    Outcome.PUSH: Decimal("1.0"),
    Outcome.LOSE: Decimal("0"),
}


class Hand:
    """
    A blackjack hand with cached value calculation.

    Value, softness and the derived flags are recomputed on every mutation
    so they are never stale relative to the cards held.
    """

    def __init__(self, cards: list[Card] | None = None) -> None:
        self._cards: list[Card] = list(cards or [])
        self._value = 0
        self._is_soft = False
        self._recalculate()

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self._cards.append(card)
        self._recalculate()

    def remove_card(self) -> Card | None:
        """Remove and return the last card, or None if the hand is empty."""
        if not self._cards:
            return None
        card = self._cards.pop()
        self._recalculate()
        return card

    def clear(self) -> None:
        """Remove all cards from the hand."""
        self._cards.clear()
        self._value = 0
        self._is_soft = False

    def _recalculate(self) -> None:
        # Aces count 1; promoting a single Ace to 11 is the only promotion
        # that can ever fit under 21.
        total = sum(card.base_value for card in self._cards)
        has_ace = any(card.is_ace for card in self._cards)

        if has_ace and total + 10 <= 21:
            self._value = total + 10
            self._is_soft = True
        else:
            self._value = total
            self._is_soft = False

    @property
    def cards(self) -> list[Card]:
        """Return a copy of the cards in deal order."""
        return list(self._cards)

    @property
    def value(self) -> int:
        """Return the best hand value."""
        return self._value

    @property
    def is_soft(self) -> bool:
        """Check if the hand is soft (has an ace counted as 11)."""
        return self._is_soft

    @property
    def is_hard(self) -> bool:
        """Check if the hand is hard (not soft)."""
        return not self._is_soft

    @property
    def is_bust(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return self._value > 21

    @property
    def is_blackjack(self) -> bool:
        """Check if the hand is 21 with exactly two cards."""
        return len(self._cards) == 2 and self._value == 21

    @property
    def can_split(self) -> bool:
        """Check if the hand is a pair (two cards of the same rank)."""
        return len(self._cards) == 2 and self._cards[0].rank == self._cards[1].rank

    @property
    def card_count(self) -> int:
        """Return the number of cards in the hand."""
        return len(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self._cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_bust:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._cards!r}, value={self.value})"


class PlayerHand(Hand):
    """A seat's hand together with its stake and play status."""

    def __init__(
        self,
        cards: list[Card] | None = None,
        bet: Decimal = Decimal("0"),
        is_standing: bool = False,
        is_doubled: bool = False,
        is_split: bool = False,
    ) -> None:
        super().__init__(cards)
        self.bet = bet
        self.is_standing = is_standing
        self.is_doubled = is_doubled
        self.is_split = is_split

    def clear(self) -> None:
        """Remove all cards and play status, keeping the stake."""
        super().clear()
        self.is_standing = False
        self.is_doubled = False
        self.is_split = False


def evaluate_hands(player_hand: Hand, dealer_hand: Hand) -> Outcome:
    """
    Settle a player hand against the dealer's final hand.

    Checks run in a fixed order: player bust, double natural, dealer natural,
    player natural, dealer bust, then plain value comparison. A dealer natural
    therefore beats a multi-card 21. Any two-card 21 is a natural, including
    one made on a split hand.
    """
    if player_hand.is_bust:
        return Outcome.LOSE

    player_bj = player_hand.is_blackjack
    dealer_bj = dealer_hand.is_blackjack

    if player_bj and dealer_bj:
        return Outcome.PUSH
    if dealer_bj:
        return Outcome.LOSE
    if player_bj:
        return Outcome.BLACKJACK

    if dealer_hand.is_bust:
        return Outcome.WIN

    if player_hand.value > dealer_hand.value:
        return Outcome.WIN
    if player_hand.value < dealer_hand.value:
        return Outcome.LOSE
    return Outcome.PUSH

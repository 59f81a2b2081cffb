"""Card and Shoe classes - immutable card representations."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

from blackjack.errors import EmptyShoeError, NotPopulatedError
from blackjack.rng import SecureShuffler

logger = logging.getLogger(__name__)


class Suit(Enum):
    """Card suits."""

    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    @property
    def symbol(self) -> str:
        return {
            Suit.HEARTS: "♥",
            Suit.DIAMONDS: "♦",
            Suit.CLUBS: "♣",
            Suit.SPADES: "♠",
        }[self]

    def __str__(self) -> str:
        return self.symbol


class Rank(Enum):
    """Card ranks with blackjack values."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    @property
    def symbol(self) -> str:
        """Return the short rank symbol ('2'..'10', 'J', 'Q', 'K', 'A')."""
        if self.value <= 10:
            return str(self.value)
        return {
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
            Rank.ACE: "A",
        }[self]

    def __str__(self) -> str:
        return self.symbol

    @classmethod
    def from_symbol(cls, symbol: str) -> "Rank":
        """Parse a rank symbol such as '7', '10', 'T', 'q' or 'A'."""
        s = symbol.strip().upper()
        if s == "T":
            s = "10"
        for rank in cls:
            if rank.symbol == s:
                return rank
        raise ValueError(f"Invalid rank: {symbol}")

    @property
    def base_value(self) -> int:
        """Return the hard point value (Ace = 1, face cards = 10)."""
        if self.value <= 10:
            return self.value
        if self == Rank.ACE:
            return 1
        return 10

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE

    @property
    def is_ten_value(self) -> bool:
        """Check if this rank has a value of 10."""
        return self.base_value == 10


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def id(self) -> str:
        """Stable identity string, e.g. 'hearts-A'."""
        return f"{self.suit.value}-{self.rank.symbol}"

    @property
    def base_value(self) -> int:
        """Return the hard point value with Ace counted as 1."""
        return self.rank.base_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @property
    def is_ten_value(self) -> bool:
        """Check if this card has a value of 10."""
        return self.rank.is_ten_value

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', 'Kh'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        suit_map = {
            "C": Suit.CLUBS,
            "♣": Suit.CLUBS,
            "D": Suit.DIAMONDS,
            "♦": Suit.DIAMONDS,
            "H": Suit.HEARTS,
            "♥": Suit.HEARTS,
            "S": Suit.SPADES,
            "♠": Suit.SPADES,
        }

        suit_str = s[-1]
        if suit_str not in suit_map:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(Rank.from_symbol(s[:-1]), suit_map[suit_str])


def standard_deck() -> list[Card]:
    """Return the 52 cards of one deck in pristine order."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


class Shoe:
    """
    One or more decks from which cards are dealt.

    The shoe starts empty; ``populate()`` fills it and records the pristine
    order so ``reset()`` can restore it. Cards are dealt from the top, which
    is the end of the underlying list.
    """

    def __init__(self, shuffler: SecureShuffler | None = None) -> None:
        """
        Initialize an empty shoe.

        Args:
            shuffler: Random source used by ``shuffle()``
        """
        self._shuffler = shuffler or SecureShuffler()
        self._cards: list[Card] = []
        self._pristine: tuple[Card, ...] | None = None
        self._deck_count = 0

    def populate(self, deck_count: int = 1) -> "Shoe":
        """Fill the shoe with ``deck_count`` standard decks, unshuffled."""
        if deck_count < 1:
            raise ValueError("Shoe must have at least 1 deck")

        self._deck_count = deck_count
        self._cards = [card for _ in range(deck_count) for card in standard_deck()]
        self._pristine = tuple(self._cards)
        return self

    def shuffle(self) -> "Shoe":
        """Shuffle the remaining cards in place."""
        self._shuffler.shuffle(self._cards)
        logger.debug("Shuffled shoe with %d cards", len(self._cards))
        return self

    def deal(self) -> Card:
        """Remove and return the top card."""
        if not self._cards:
            raise EmptyShoeError("Cannot deal from empty shoe")
        return self._cards.pop()

    def peek(self) -> Card:
        """Return the top card without removing it."""
        if not self._cards:
            raise EmptyShoeError("Cannot peek empty shoe")
        return self._cards[-1]

    def reset(self) -> "Shoe":
        """Restore every card in its original, unshuffled order."""
        if self._pristine is None:
            raise NotPopulatedError("Cannot reset: shoe was never populated")
        self._cards = list(self._pristine)
        return self

    def stack(self, cards: Iterable[Card]) -> "Shoe":
        """
        Place cards on top of the shoe in deal order.

        The first card given is the next card dealt. Used to replay a known
        sequence of cards.
        """
        self._cards.extend(reversed(list(cards)))
        return self

    def remaining_count(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    def is_empty(self) -> bool:
        """Check if no cards remain."""
        return not self._cards

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    @property
    def cards_dealt(self) -> int:
        """Return the number of cards dealt since the last populate or reset."""
        return max(self.total_cards - len(self._cards), 0)

    @property
    def total_cards(self) -> int:
        """Return the total number of cards in a full shoe."""
        return self._deck_count * 52

    @property
    def deck_count(self) -> int:
        """Return the number of decks in the shoe."""
        return self._deck_count

    @property
    def is_populated(self) -> bool:
        return self._pristine is not None

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

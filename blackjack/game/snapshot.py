"""Pydantic schemas for engine snapshots and round results."""

from decimal import Decimal

from pydantic import BaseModel, Field

from blackjack.cards import Card, Rank, Suit
from blackjack.game.state import RoundPhase
from blackjack.hand import Hand, Outcome, PlayerHand


class CardState(BaseModel):
    """Card representation."""

    suit: Suit
    rank: str
    id: str

    @classmethod
    def from_card(cls, card: Card) -> "CardState":
        return cls(suit=card.suit, rank=card.rank.symbol, id=card.id)

    def to_card(self) -> Card:
        return Card(Rank.from_symbol(self.rank), self.suit)


class HandState(BaseModel):
    """Hand representation (dealer shape, no stake)."""

    cards: list[CardState] = Field(default_factory=list)
    value: int = 0
    is_soft: bool = False
    is_bust: bool = False
    is_blackjack: bool = False
    is_standing: bool = False
    is_doubled: bool = False
    is_split: bool = False
    can_split: bool = False

    @classmethod
    def from_hand(cls, hand: Hand) -> "HandState":
        return cls(
            cards=[CardState.from_card(card) for card in hand.cards],
            value=hand.value,
            is_soft=hand.is_soft,
            is_bust=hand.is_bust,
            is_blackjack=hand.is_blackjack,
        )


class PlayerHandState(HandState):
    """A seat's hand with its stake."""

    bet: Decimal = Decimal("0")

    @classmethod
    def from_player_hand(cls, hand: PlayerHand, can_split: bool) -> "PlayerHandState":
        return cls(
            cards=[CardState.from_card(card) for card in hand.cards],
            value=hand.value,
            is_soft=hand.is_soft,
            is_bust=hand.is_bust,
            is_blackjack=hand.is_blackjack,
            is_standing=hand.is_standing,
            is_doubled=hand.is_doubled,
            is_split=hand.is_split,
            can_split=can_split,
            bet=hand.bet,
        )

    def to_player_hand(self) -> PlayerHand:
        return PlayerHand(
            cards=[card.to_card() for card in self.cards],
            bet=self.bet,
            is_standing=self.is_standing,
            is_doubled=self.is_doubled,
            is_split=self.is_split,
        )


class GameSnapshot(BaseModel):
    """
    Read-only view of the whole engine.

    Built fresh on every request, so changing a snapshot never reaches the
    engine that produced it.
    """

    phase: RoundPhase
    player_hands: list[PlayerHandState] = Field(default_factory=list)
    dealer_hand: HandState = Field(default_factory=HandState)
    balance: Decimal
    bets: list[Decimal] = Field(default_factory=list)
    current_hand_index: int = Field(default=0, ge=0)
    hand_count: int = Field(default=1, ge=1, le=3)
    insurance_offered: bool = False
    insurance_taken: bool = False
    insurance_bet: Decimal = Decimal("0")
    min_bet: int
    max_bet: int

    # Remaining table rules, so a restored engine plays the same game
    deck_count: int = Field(default=6, ge=1, le=8)
    dealer_hits_soft_17: bool = True
    split_ten_values: bool = False
    reshuffle_threshold: int = Field(default=15, ge=0)

    @property
    def current_hand(self) -> PlayerHandState | None:
        if 0 <= self.current_hand_index < len(self.player_hands):
            return self.player_hands[self.current_hand_index]
        return None


class RoundResult(BaseModel):
    """Settlement of one player hand."""

    slot: int = Field(..., ge=0, le=2)
    outcome: Outcome
    winnings: Decimal
    message: str

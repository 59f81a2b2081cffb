"""Table rule configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TableRules:
    """
    Blackjack table rules configuration.

    Everything the engine treats as a house option lives here. Payouts are
    fixed (3:2 naturals, 1:1 wins, insurance pays 2x its stake).
    """

    # Deck configuration
    deck_count: int = 6

    # Betting limits
    min_bet: int = 10
    max_bet: int = 500

    # Dealer rules
    dealer_hits_soft_17: bool = True  # H17 vs S17

    # Split rules: any two ten-value cards pair up when True (K-J),
    # otherwise only identical ranks do
    split_ten_values: bool = False

    # Reset and reshuffle the shoe at round start below this many cards
    reshuffle_threshold: int = 15

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.deck_count < 1 or self.deck_count > 8:
            raise ValueError("deck_count must be between 1 and 8")
        if self.min_bet < 1:
            raise ValueError("min_bet must be at least 1")
        if self.max_bet < self.min_bet:
            raise ValueError("max_bet must not be below min_bet")
        if self.reshuffle_threshold < 0:
            raise ValueError("reshuffle_threshold must not be negative")
        if self.reshuffle_threshold >= self.deck_count * 52:
            raise ValueError("reshuffle_threshold must be smaller than the shoe")

    @classmethod
    def vegas_strip(cls) -> "TableRules":
        """Six decks, dealer stands on all 17s."""
        return cls(deck_count=6, dealer_hits_soft_17=False)

    @classmethod
    def downtown_vegas(cls) -> "TableRules":
        """Downtown Las Vegas rules (typically H17)."""
        return cls(deck_count=6, dealer_hits_soft_17=True)

    @classmethod
    def single_deck(cls) -> "TableRules":
        """Single deck, H17."""
        return cls(deck_count=1, dealer_hits_soft_17=True)

"""Configuration management with environment variable support."""

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal

from blackjack.rules import TableRules


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class GameConfig:
    """Default game configuration."""

    initial_balance: Decimal = field(
        default_factory=lambda: Decimal(os.getenv("BLACKJACK_INITIAL_BALANCE", "1000"))
    )
    min_bet: int = field(default_factory=lambda: int(os.getenv("BLACKJACK_MIN_BET", "10")))
    max_bet: int = field(default_factory=lambda: int(os.getenv("BLACKJACK_MAX_BET", "500")))
    deck_count: int = field(
        default_factory=lambda: int(os.getenv("BLACKJACK_DECK_COUNT", "6"))
    )
    dealer_hits_soft_17: bool = field(
        default_factory=lambda: _env_bool("BLACKJACK_DEALER_HITS_SOFT_17", "true")
    )
    split_ten_values: bool = field(
        default_factory=lambda: _env_bool("BLACKJACK_SPLIT_TEN_VALUES", "false")
    )
    reshuffle_threshold: int = field(
        default_factory=lambda: int(os.getenv("BLACKJACK_RESHUFFLE_THRESHOLD", "15"))
    )

    def to_rules(self) -> TableRules:
        """Build the engine-facing rule set."""
        return TableRules(
            deck_count=self.deck_count,
            min_bet=self.min_bet,
            max_bet=self.max_bet,
            dealer_hits_soft_17=self.dealer_hits_soft_17,
            split_ten_values=self.split_ten_values,
            reshuffle_threshold=self.reshuffle_threshold,
        )


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    format: str = field(
        default_factory=lambda: os.getenv(
            "LOG_FORMAT", "%(asctime)s %(levelname)s %(name)s: %(message)s"
        )
    )


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: _env_bool("DEBUG", "false"))

    game: GameConfig = field(default_factory=GameConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def configure_logging(app_config: AppConfig | None = None) -> None:
    """Apply the logging configuration to the root logger."""
    app_config = app_config or config
    level = "DEBUG" if app_config.debug else app_config.logging.level
    logging.basicConfig(level=level, format=app_config.logging.format)


# Global configuration instance
config = AppConfig()

"""Secure random integers and Fisher-Yates shuffling for the shoe."""

import logging
import os
import random
import secrets
from typing import Callable, MutableSequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Size of the space a single 32-bit draw covers
UINT32_RANGE = 2**32

# Callable returning k uniformly random bits as an int
EntropySource = Callable[[int], int]


def is_secure_source_available() -> bool:
    """Check whether the host exposes an OS-level entropy source."""
    try:
        os.urandom(1)
    except NotImplementedError:
        return False
    return True


class SecureShuffler:
    """
    Uniform random integers and permutations from a strong entropy source.

    Integers are produced by rejection sampling over 32-bit draws so that the
    final modulo reduction carries no bias. Without an OS entropy source the
    shuffler degrades to ``random.Random`` and logs a warning instead of
    failing.
    """

    def __init__(self, entropy: EntropySource | None = None) -> None:
        """
        Initialize the shuffler.

        Args:
            entropy: Source of random bits. Defaults to ``secrets.randbits``.
        """
        self._entropy = entropy or secrets.randbits
        self._fallback: random.Random | None = None

    @property
    def is_secure(self) -> bool:
        """Return False once the shuffler has fallen back to a weak source."""
        return self._fallback is None

    def _draw32(self) -> int:
        """Draw one uniform 32-bit value."""
        if self._fallback is not None:
            return self._fallback.getrandbits(32)
        try:
            return self._entropy(32)
        except NotImplementedError:
            logger.warning(
                "Secure entropy source unavailable; falling back to "
                "random.Random, which is not cryptographically secure"
            )
            self._fallback = random.Random()
            return self._fallback.getrandbits(32)

    def random_int(self, min_value: int, max_value: int) -> int:
        """
        Return a uniformly distributed integer in [min_value, max_value].

        Raises:
            ValueError: If min_value > max_value or the range exceeds 2**32
        """
        if min_value > max_value:
            raise ValueError(
                f"Invalid range: min ({min_value}) cannot be greater than max ({max_value})"
            )
        if min_value == max_value:
            return min_value

        span = max_value - min_value + 1
        if span > UINT32_RANGE:
            raise ValueError(f"Range of {span} values exceeds a 32-bit draw")

        # Largest multiple of span that fits in 32 bits
        limit = UINT32_RANGE - (UINT32_RANGE % span)
        value = self._draw32()
        while value >= limit:
            value = self._draw32()

        return value % span + min_value

    def shuffle(self, items: MutableSequence[T]) -> MutableSequence[T]:
        """Shuffle a sequence in place (Fisher-Yates) and return it."""
        for i in range(len(items) - 1, 0, -1):
            j = self.random_int(0, i)
            items[i], items[j] = items[j], items[i]
        return items

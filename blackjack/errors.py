"""Exceptions raised by the engine for programming and environment failures.

Ordinary "not legal right now" conditions are reported through boolean
return values, never through these.
"""


class BlackjackError(Exception):
    """Base class for engine errors."""


class EmptyShoeError(BlackjackError, IndexError):
    """Raised when dealing or peeking from an empty shoe."""


class NotPopulatedError(BlackjackError, RuntimeError):
    """Raised when resetting a shoe that was never populated."""


class InvalidTransitionError(BlackjackError, ValueError):
    """Raised when the round state machine is asked for an illegal move."""

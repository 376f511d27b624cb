"""Custom exceptions for conductor lifecycle operations."""

from __future__ import annotations


class InvalidStateTransitionError(ValueError):
    """Raised when the conductor lifecycle is asked to make an invalid move.

    Example:
        Calling ``start()`` from inside a membership handler while the
        conductor is still STARTING would raise this exception, since
        ``start`` is not re-entrant.
    """

    code = "INVALID_STATE_TRANSITION"

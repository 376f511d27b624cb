"""Centralized error definitions for the conductor.

This module provides a unified error hierarchy for the replication core and
user-friendly error handling for the command line.

Usage:
    from conductor.errors import (
        ConductorError,
        ConfigError,
        InvalidRuleError,
        handle_error,
    )

    try:
        conductor.start(my_id, rules, max_bytes)
    except ConductorError as e:
        print(handle_error(e))
"""

from __future__ import annotations

from conductor.errors.user_messages import (
    get_user_message,
    get_recovery_suggestion,
    format_error_for_user,
)


# =============================================================================
# Base Error
# =============================================================================


class ConductorError(Exception):
    """Base exception for all conductor errors.

    Attributes:
        code: Error code for categorization
        user_message: User-friendly message (optional override)
        recoverable: Whether the error is potentially recoverable
        details: Additional error details for debugging
    """

    code: str = "CONDUCTOR_ERROR"
    default_message: str = "An unexpected error occurred"
    recoverable: bool = True

    def __init__(
        self,
        message: str | None = None,
        *,
        user_message: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.message = message or self.default_message
        self._user_message = user_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Get user-friendly message."""
        if self._user_message:
            return self._user_message
        return get_user_message(self)

    @property
    def recovery_suggestion(self) -> str:
        """Get recovery suggestion."""
        return get_recovery_suggestion(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "recoverable": self.recoverable,
            "details": self.details,
        }


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(ConductorError):
    """Invalid byte budget, missing collaborator, or bad configuration file."""

    code = "CONFIG_ERROR"
    default_message = "Configuration error"


# =============================================================================
# Rule Errors
# =============================================================================


class InvalidRuleError(ConductorError):
    """A rule string does not follow the ``domain@goal`` grammar."""

    code = "INVALID_RULE"
    default_message = "Invalid replication rule"

    def __init__(
        self,
        raw: object,
        reason: str,
        *,
        details: dict | None = None,
    ) -> None:
        self.raw = raw
        self.reason = reason
        payload = {"rule": repr(raw), "reason": reason}
        if details:
            payload.update(details)
        super().__init__(f"Invalid rule {raw!r}: {reason}", details=payload)


class MissingCollaboratorError(ConductorError):
    """A rule needs a collaborator that is not installed."""

    code = "MISSING_COLLABORATOR"
    default_message = "Required collaborator is not installed"
    recoverable = False

    def __init__(
        self,
        collaborator: str,
        *,
        message: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.collaborator = collaborator
        payload = {"collaborator": collaborator}
        if details:
            payload.update(details)
        super().__init__(
            message or f"conductor needs the {collaborator} collaborator",
            details=payload,
        )


# =============================================================================
# Error Handler
# =============================================================================


def handle_error(error: Exception) -> str:
    """Handle an error and return a user-friendly message.

    Args:
        error: The exception to handle

    Returns:
        User-friendly error message with recovery suggestion
    """
    return format_error_for_user(error)


def is_recoverable(error: Exception) -> bool:
    """Check if an error is potentially recoverable."""
    if isinstance(error, ConductorError):
        return error.recoverable
    return False


__all__ = [
    "ConductorError",
    "ConfigError",
    "InvalidRuleError",
    "MissingCollaboratorError",
    "handle_error",
    "is_recoverable",
]

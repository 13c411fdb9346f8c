"""Custom exceptions for scribbl-relay."""

from __future__ import annotations


class RelayError(Exception):
    """Base exception class for all scribbl-relay errors."""


class MalformedFrameError(RelayError):
    """Raised when an inbound WebSocket frame cannot be decoded into an event.

    Attributes:
        reason: Short machine-readable reason, used as a log field.
    """

    def __init__(self, reason: str, message: str) -> None:
        """Initialize the exception.

        Args:
            reason: Short machine-readable reason (e.g. ``invalid_json``).
            message: Human readable description.
        """
        self.reason = reason
        super().__init__(message)

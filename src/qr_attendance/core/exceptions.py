from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a token, student, record or eligible notification does not exist."""


class InvalidTransitionError(DomainError):
    """Raised when a scan is not allowed from the student's current day state."""

    def __init__(self, current_state: str, requested: str):
        self.current_state = current_state
        self.requested = requested
        super().__init__(f"Cannot apply {requested} while attendance is {current_state}")


class TransportError(DomainError):
    """Raised when a message could not be delivered (including timeouts)."""


class ConflictingWriteError(DomainError):
    """Raised by repositories when a concurrent write won the same student-day key."""

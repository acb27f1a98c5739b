from __future__ import annotations

from datetime import datetime


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when an event or attendance record does not exist."""


class AuthorizationError(DomainError):
    """Raised when a principal lacks permission for an action."""


class AlreadyVerifiedError(DomainError):
    """Raised when a human decision was already recorded for the record."""


class ConflictError(DomainError):
    """Raised when an optimistic update lost a race. Callers may retry or ignore."""


class RateLimitExceeded(DomainError):
    """Raised when a rate limit policy denies the guarded action."""

    def __init__(self, message: str, *, remaining: int, reset_at: datetime):
        super().__init__(message)
        self.remaining = int(remaining)
        self.reset_at = reset_at

    def retry_after_seconds(self, now: datetime) -> int:
        delta = (self.reset_at - now).total_seconds()
        return max(1, int(delta + 0.999))

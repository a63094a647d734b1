"""Typed domain errors.

Every failure a service reports to its caller is a ``DispatchError`` carrying
an ``ErrorKind``. The API layer maps the kind to an HTTP status in one place
(see ``alertivo.main``); services never build HTTP responses themselves.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limit_exceeded"
    ACCOUNT_LOCKED = "account_locked"
    INVALID_OTP = "invalid_or_expired_otp"
    INTERNAL = "internal_error"


class DispatchError(Exception):
    """Base class for expected, caller-visible failures."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, retry_after_seconds: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.retry_after_seconds = retry_after_seconds


class ValidationError(DispatchError):
    """Missing or malformed input."""

    kind = ErrorKind.VALIDATION


class NotFoundError(DispatchError):
    """Referenced entity does not exist."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(DispatchError):
    """State-machine precondition violated."""

    kind = ErrorKind.CONFLICT


class RateLimitExceeded(DispatchError):
    kind = ErrorKind.RATE_LIMITED


class AccountLocked(DispatchError):
    kind = ErrorKind.ACCOUNT_LOCKED


class InvalidOrExpiredOTP(DispatchError):
    kind = ErrorKind.INVALID_OTP


class InternalError(DispatchError):
    """A downstream dependency (email, push, sync) failed."""

    kind = ErrorKind.INTERNAL

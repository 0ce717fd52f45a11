"""Domain exceptions for IAM bounded context.

These exceptions represent domain-level errors that can occur during
API key issuance, validation and revocation. They should be caught and
handled by the presentation layer, which maps each one to an HTTP status.
"""

from __future__ import annotations

from datetime import datetime

from iam.domain.exceptions import (
    APIKeyQuotaExceededError,
    DuplicateAPIKeyNameError,
)

__all__ = [
    "APIKeyDeactivatedError",
    "APIKeyExpiredError",
    "APIKeyNotFoundError",
    "APIKeyOwnershipError",
    "APIKeyQuotaExceededError",
    "APIKeyStoreUnavailableError",
    "APIKeyValidationError",
    "CorruptAPIKeyRecordError",
    "DailyRateLimitExceededError",
    "DuplicateAPIKeyNameError",
    "InvalidAPIKeyFormatError",
    "InvalidAPIKeyNameError",
    "InvalidScopeError",
    "MonthlyRateLimitExceededError",
    "RateLimitExceededError",
]


class APIKeyValidationError(Exception):
    """Base class for request-time API key rejections.

    Each subclass carries a stable ``reason`` code suitable for clients
    and logs. A rejected request is never counted against usage.
    """

    reason: str = "invalid"


class InvalidAPIKeyFormatError(APIKeyValidationError):
    """Raised when a presented key does not have the issued key shape.

    The store is never consulted for a malformed key.
    """

    reason = "invalid-format"


class APIKeyNotFoundError(APIKeyValidationError):
    """Raised when an API key cannot be found.

    Raised by validation when no record matches the key hash, and by
    revocation when no record has the given id.
    """

    reason = "not-found"


class APIKeyDeactivatedError(APIKeyValidationError):
    """Raised when a revoked API key is presented."""

    reason = "deactivated"


class APIKeyExpiredError(APIKeyValidationError):
    """Raised when an API key is presented after its expiry."""

    reason = "expired"


class RateLimitExceededError(APIKeyValidationError):
    """Raised when an API key has used up a request window.

    Attributes:
        limit: The ceiling that was reached
        retry_after_seconds: Seconds until the window resets
        reset_at: The instant the window resets (UTC)
    """

    def __init__(
        self,
        message: str,
        limit: int,
        retry_after_seconds: int,
        reset_at: datetime,
    ):
        super().__init__(message)
        self.limit = limit
        self.retry_after_seconds = retry_after_seconds
        self.reset_at = reset_at


class DailyRateLimitExceededError(RateLimitExceededError):
    """Raised when the daily request ceiling has been reached."""

    reason = "daily-limit-exceeded"


class MonthlyRateLimitExceededError(RateLimitExceededError):
    """Raised when the monthly request ceiling has been reached."""

    reason = "monthly-limit-exceeded"


class InvalidScopeError(Exception):
    """Raised when issuance requests no scopes or an unknown scope."""

    pass


class InvalidAPIKeyNameError(Exception):
    """Raised when issuance requests a blank key name."""

    pass


class APIKeyOwnershipError(Exception):
    """Raised when a user operates on an API key owned by someone else."""

    pass


class APIKeyStoreUnavailableError(Exception):
    """Raised when the key store fails with a transient I/O error.

    Callers may retry a bounded number of times. The failed operation has
    been rolled back, so a retry never double-counts usage.
    """

    pass


class CorruptAPIKeyRecordError(Exception):
    """Raised when a stored API key record does not match the expected schema."""

    pass

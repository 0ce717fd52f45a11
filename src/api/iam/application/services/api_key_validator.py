"""Request-time API key validation for IAM bounded context.

Every request to a protected endpoint passes through ``APIKeyValidator``.
A pass checks the key format, loads the record under a lock, applies the
lifecycle checks and the daily and monthly windows, and counts the request
when it is accepted. All of it happens against a single reference instant.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Awaitable, Callable

from iam.application.observability.api_key_validator_probe import (
    APIKeyValidatorProbe,
    DefaultAPIKeyValidatorProbe,
)
from iam.application.security import (
    display_suffix,
    hash_api_key_secret,
    is_valid_api_key_format,
)
from iam.application.value_objects import ValidatedAPIKey
from iam.domain.aggregates import APIKey
from iam.domain.value_objects import (
    UsageOutcome,
    next_daily_reset,
    next_monthly_reset,
)
from iam.ports.exceptions import (
    APIKeyDeactivatedError,
    APIKeyExpiredError,
    APIKeyNotFoundError,
    APIKeyStoreUnavailableError,
    DailyRateLimitExceededError,
    InvalidAPIKeyFormatError,
    MonthlyRateLimitExceededError,
)
from iam.ports.repositories import IAPIKeyRepository

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.05


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _seconds_until(moment: datetime, now: datetime) -> int:
    return max(int((moment - now).total_seconds() + 0.999), 1)


class APIKeyValidator:
    """Validates presented API keys and accounts for their usage.

    Passes on the same key are serialized by the repository lock, so
    concurrent requests never lose an increment or apply a reset twice.
    A rejected request is never counted. Counter resets that happen on
    the way to a rejection are still persisted.
    """

    def __init__(
        self,
        api_key_repository: IAPIKeyRepository,
        probe: APIKeyValidatorProbe | None = None,
        clock: Callable[[], datetime] = _utc_now,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize APIKeyValidator with dependencies.

        Args:
            api_key_repository: Repository holding the key records
            probe: Optional domain probe for observability
            clock: Source of the current UTC time
            max_attempts: Attempts made by validate_with_retries
            backoff_seconds: Base delay between attempts, grows linearly
            sleep: Awaitable used to wait between attempts
        """
        self._api_key_repository = api_key_repository
        self._probe = probe or DefaultAPIKeyValidatorProbe()
        self._clock = clock
        self._max_attempts = max(max_attempts, 1)
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep

    async def validate(self, presented_key: str) -> ValidatedAPIKey:
        """Run one validation pass for a presented key.

        Args:
            presented_key: The key string sent by the client

        Returns:
            The validated key with its usage after this request

        Raises:
            InvalidAPIKeyFormatError: If the key is malformed
            APIKeyNotFoundError: If no record matches the key
            APIKeyDeactivatedError: If the key was revoked
            APIKeyExpiredError: If the key is past its expiry
            DailyRateLimitExceededError: If today's ceiling is reached
            MonthlyRateLimitExceededError: If this month's ceiling is reached
            APIKeyStoreUnavailableError: If the store fails
        """
        now = self._clock()

        if not is_valid_api_key_format(presented_key):
            self._probe.api_key_rejected(reason=InvalidAPIKeyFormatError.reason)
            raise InvalidAPIKeyFormatError("Invalid API key format")

        key_hash = hash_api_key_secret(presented_key)

        async with self._api_key_repository.lock_by_key_hash(key_hash) as api_key:
            outcome = api_key.consume_request(now) if api_key is not None else None

        if api_key is None:
            self._probe.api_key_rejected(
                reason=APIKeyNotFoundError.reason,
                key_suffix=display_suffix(key_hash),
            )
            raise APIKeyNotFoundError("API key not found")

        if outcome is not UsageOutcome.ACCEPTED:
            self._raise_rejection(api_key, outcome, now)

        self._probe.api_key_accepted(
            api_key_id=api_key.id.value,
            requests_today=api_key.usage.requests_today,
            daily_limit=api_key.usage.daily_limit,
        )
        return ValidatedAPIKey(
            api_key_id=api_key.id,
            owner_id=api_key.owner_id,
            scopes=api_key.scopes,
            tier=api_key.tier,
            usage=api_key.usage,
            resets_at=next_daily_reset(now),
        )

    async def validate_with_retries(self, presented_key: str) -> ValidatedAPIKey:
        """Validate a key, retrying when the store is temporarily unavailable.

        Only APIKeyStoreUnavailableError is retried. Each attempt is a fresh
        pass, and a failed pass has persisted nothing, so a retry cannot
        count a request twice.

        Raises:
            APIKeyStoreUnavailableError: If every attempt failed
        """
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self.validate(presented_key)
            except APIKeyStoreUnavailableError as e:
                self._probe.store_unavailable(
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    error=str(e),
                )
                if attempt == self._max_attempts:
                    raise
                await self._sleep(self._backoff_seconds * attempt)

        raise APIKeyStoreUnavailableError("API key store unavailable")

    def _raise_rejection(
        self, api_key: APIKey, outcome: UsageOutcome | None, now: datetime
    ) -> None:
        api_key_id = api_key.id.value

        if outcome is UsageOutcome.DEACTIVATED:
            self._probe.api_key_rejected(
                reason=APIKeyDeactivatedError.reason, api_key_id=api_key_id
            )
            raise APIKeyDeactivatedError("API key has been deactivated")

        if outcome is UsageOutcome.EXPIRED:
            self._probe.api_key_rejected(
                reason=APIKeyExpiredError.reason, api_key_id=api_key_id
            )
            raise APIKeyExpiredError("API key has expired")

        if outcome is UsageOutcome.DAILY_LIMIT_EXCEEDED:
            limit = api_key.usage.daily_limit
            reset_at = next_daily_reset(now)
            self._probe.rate_limit_exceeded(
                api_key_id=api_key_id, window="daily", limit=limit
            )
            raise DailyRateLimitExceededError(
                f"Daily rate limit exceeded ({limit} requests per day)",
                limit=limit,
                retry_after_seconds=_seconds_until(reset_at, now),
                reset_at=reset_at,
            )

        limit = api_key.usage.monthly_limit
        reset_at = next_monthly_reset(now)
        self._probe.rate_limit_exceeded(
            api_key_id=api_key_id, window="monthly", limit=limit
        )
        raise MonthlyRateLimitExceededError(
            f"Monthly rate limit exceeded ({limit} requests per month)",
            limit=limit,
            retry_after_seconds=_seconds_until(reset_at, now),
            reset_at=reset_at,
        )

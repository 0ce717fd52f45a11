"""APIKey aggregate for IAM context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from iam.domain.value_objects import (
    APIKeyId,
    Scope,
    Tier,
    UsageCounters,
    UsageOutcome,
    UserId,
)

KEY_SUFFIX_LENGTH = 8


@dataclass
class APIKey:
    """APIKey aggregate representing a programmatic access credential.

    Business rules:
    - Only the hash of the secret is held; the plaintext never reaches the aggregate
    - Keys can be revoked but not reactivated
    - Expired keys are invalid
    - Every accepted request is counted against daily and monthly limits,
      and a rejected request is never counted

    Identity, owner, name, scopes and tier are fixed at issuance. Only the
    lifecycle fields and usage counters change afterwards.
    """

    id: APIKeyId
    owner_id: UserId
    name: str
    key_hash: str
    scopes: frozenset[Scope]
    tier: Tier
    created_at: datetime
    usage: UsageCounters
    expires_at: datetime | None = None
    last_used_at: datetime | None = None
    is_active: bool = True
    revoked_at: datetime | None = None

    @classmethod
    def create(
        cls,
        owner_id: UserId,
        name: str,
        key_hash: str,
        scopes: frozenset[Scope],
        tier: Tier,
        expires_at: datetime | None = None,
        now: datetime | None = None,
    ) -> APIKey:
        """Factory method for issuing a new API key.

        Args:
            owner_id: The account that owns the key
            name: Label chosen by the owner
            key_hash: The hashed secret (never store plaintext)
            scopes: Capabilities granted to the key
            tier: Rate-limit profile; the key copies its limits
            expires_at: Optional absolute expiry
            now: Issuance instant, defaults to the current UTC time

        Returns:
            A new active APIKey with zeroed usage counters
        """
        issued_at = now or datetime.now(UTC)
        return cls(
            id=APIKeyId.generate(),
            owner_id=owner_id,
            name=name,
            key_hash=key_hash,
            scopes=frozenset(scopes),
            tier=tier,
            created_at=issued_at,
            usage=UsageCounters.fresh(tier.limits, issued_at.astimezone(UTC).date()),
            expires_at=expires_at,
        )

    @property
    def key_suffix(self) -> str:
        """Display-safe tail of the key hash."""
        return self.key_hash[-KEY_SUFFIX_LENGTH:]

    def is_owned_by(self, user_id: UserId) -> bool:
        """Check whether the given user owns this key."""
        return self.owner_id == user_id

    def is_expired(self, now: datetime) -> bool:
        """Check whether the key has passed its expiry."""
        return self.expires_at is not None and now >= self.expires_at

    def revoke(self, now: datetime | None = None) -> bool:
        """Revoke this API key, making it permanently unusable.

        Revoking an already revoked key leaves it untouched.

        Returns:
            True if the key was active and is now revoked, False otherwise
        """
        if not self.is_active:
            return False

        self.is_active = False
        self.revoked_at = now or datetime.now(UTC)
        return True

    def consume_request(self, now: datetime) -> UsageOutcome:
        """Run one request through the lifecycle and rate-limit gate.

        Counter resets are applied to the aggregate even when the request is
        then rejected. The counters are only incremented, and
        ``last_used_at`` only moved, when the request is accepted.

        The monthly window is compared against the reset date as it was
        before this call, so a daily reset on the first request of a new
        month still triggers the monthly reset.

        Args:
            now: The single reference instant for this request (UTC aware)

        Returns:
            The outcome of the gate
        """
        if not self.is_active:
            return UsageOutcome.DEACTIVATED

        if self.is_expired(now):
            return UsageOutcome.EXPIRED

        today = now.astimezone(UTC).date()
        previous_reset = self.usage.last_reset_date

        if previous_reset != today:
            self.usage = self.usage.reset_daily(today)

        if self.usage.requests_today >= self.usage.daily_limit:
            return UsageOutcome.DAILY_LIMIT_EXCEEDED

        if (previous_reset.year, previous_reset.month) != (today.year, today.month):
            self.usage = self.usage.reset_monthly()

        if self.usage.total_requests >= self.usage.monthly_limit:
            return UsageOutcome.MONTHLY_LIMIT_EXCEEDED

        self.usage = self.usage.incremented()
        self.last_used_at = now
        return UsageOutcome.ACCEPTED

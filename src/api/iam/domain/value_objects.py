"""Value objects for IAM domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers and domain concepts.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, time, timedelta
from enum import StrEnum

from ulid import ULID


@dataclass(frozen=True)
class APIKeyId:
    """Identifier for an APIKey aggregate.

    Uses ULID for sortability and distribution-friendly generation.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> APIKeyId:
        """Generate a new APIKeyId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> APIKeyId:
        """Create APIKeyId from string value.

        Args:
            value: ULID string

        Returns:
            APIKeyId instance

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            ULID.from_str(value)
        except ValueError as e:
            raise ValueError(f"Invalid APIKeyId: {value}") from e

        return cls(value=value)


@dataclass(frozen=True)
class UserId:
    """Identifier of a key owner.

    Owners come from the external identity provider, so the value is an
    opaque subject string rather than a ULID.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def from_string(cls, value: str) -> UserId:
        """Create UserId from an identity provider subject.

        Raises:
            ValueError: If value is empty or whitespace
        """
        if not value or not value.strip():
            raise ValueError("Invalid UserId: cannot be blank")
        return cls(value=value)


class Scope(StrEnum):
    """Capability tokens that can be granted to an API key."""

    SCAN_FILE = "scan:file"
    SCAN_URL = "scan:url"
    REPORTS_READ = "reports:read"
    REPORTS_WRITE = "reports:write"
    ADMIN = "admin"

    @classmethod
    def parse_many(cls, values: Iterable[str]) -> frozenset[Scope]:
        """Parse scope strings into a non-empty scope set.

        Args:
            values: Requested scope names

        Returns:
            The parsed scopes

        Raises:
            ValueError: If the set is empty or contains unknown scopes
        """
        requested = list(values)
        if not requested:
            raise ValueError("At least one scope is required")

        known = {scope.value for scope in cls}
        unknown = sorted({value for value in requested if value not in known})
        if unknown:
            raise ValueError(f"Invalid scopes: {', '.join(unknown)}")

        return frozenset(cls(value) for value in requested)


@dataclass(frozen=True)
class RateLimits:
    """Daily and monthly request ceilings of a tier."""

    daily: int
    monthly: int


class Tier(StrEnum):
    """Rate-limit profiles an API key can be issued under."""

    FREE = "FREE"
    PRO = "PRO"
    ENTERPRISE = "ENTERPRISE"

    @property
    def limits(self) -> RateLimits:
        """Return the request ceilings for this tier."""
        return _TIER_LIMITS[self]


_TIER_LIMITS: dict[Tier, RateLimits] = {
    Tier.FREE: RateLimits(daily=100, monthly=1_000),
    Tier.PRO: RateLimits(daily=1_000, monthly=20_000),
    Tier.ENTERPRISE: RateLimits(daily=10_000, monthly=200_000),
}


@dataclass(frozen=True)
class UsageCounters:
    """Request accounting for one API key.

    ``total_requests`` counts the current calendar month and
    ``requests_today`` the current calendar day, both in UTC.
    ``last_reset_date`` is the UTC date of the most recent reset.
    """

    total_requests: int
    requests_today: int
    daily_limit: int
    monthly_limit: int
    last_reset_date: date

    @classmethod
    def fresh(cls, limits: RateLimits, today: date) -> UsageCounters:
        """Create zeroed counters for a newly issued key."""
        return cls(
            total_requests=0,
            requests_today=0,
            daily_limit=limits.daily,
            monthly_limit=limits.monthly,
            last_reset_date=today,
        )

    @property
    def remaining_today(self) -> int:
        """Requests left in the current day."""
        return max(self.daily_limit - self.requests_today, 0)

    def reset_daily(self, today: date) -> UsageCounters:
        """Zero the daily counter and stamp the reset date."""
        return replace(self, requests_today=0, last_reset_date=today)

    def reset_monthly(self) -> UsageCounters:
        """Zero both counters."""
        return replace(self, total_requests=0, requests_today=0)

    def incremented(self) -> UsageCounters:
        """Count one accepted request."""
        return replace(
            self,
            total_requests=self.total_requests + 1,
            requests_today=self.requests_today + 1,
        )


class UsageOutcome(StrEnum):
    """Result of running a request through the usage gate of an API key."""

    ACCEPTED = "accepted"
    DEACTIVATED = "deactivated"
    EXPIRED = "expired"
    DAILY_LIMIT_EXCEEDED = "daily-limit-exceeded"
    MONTHLY_LIMIT_EXCEEDED = "monthly-limit-exceeded"


def next_daily_reset(now: datetime) -> datetime:
    """Return the next UTC midnight after ``now``."""
    today = now.astimezone(UTC).date()
    return datetime.combine(today + timedelta(days=1), time.min, tzinfo=UTC)


def next_monthly_reset(now: datetime) -> datetime:
    """Return the first instant of the UTC month after ``now``."""
    current = now.astimezone(UTC)
    if current.month == 12:
        return datetime(current.year + 1, 1, 1, tzinfo=UTC)
    return datetime(current.year, current.month + 1, 1, tzinfo=UTC)

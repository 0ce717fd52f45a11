"""Application-layer value objects for IAM bounded context.

These are value objects specific to the application layer, representing
cross-cutting concerns like authentication context and read-only view objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from iam.domain.value_objects import APIKeyId, Scope, Tier, UsageCounters, UserId


@dataclass(frozen=True)
class CurrentUser:
    """Represents the currently authenticated key owner.

    This is extracted from the bearer token and used throughout the request
    lifecycle of the key management endpoints.

    This is an application-layer concept (not domain) because it represents
    the authentication context of the request, not a core business entity.
    """

    user_id: UserId
    is_admin: bool = False


@dataclass(frozen=True)
class ValidatedAPIKey:
    """Result of a successful API key validation.

    Carries what a protected endpoint needs about the caller: who owns the
    key, what it may do, the usage after the request was counted, and
    when the daily window resets.
    """

    api_key_id: APIKeyId
    owner_id: UserId
    scopes: frozenset[Scope]
    tier: Tier
    usage: UsageCounters
    resets_at: datetime

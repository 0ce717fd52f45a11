"""Pydantic models for API key requests and responses.

JSON field names are camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from iam.application.security import display_suffix
from iam.domain.aggregates import APIKey
from iam.domain.value_objects import Tier, UsageCounters


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateAPIKeyRequest(CamelModel):
    """Request model for creating an API key.

    The API key secret is generated server-side and returned only once
    in the creation response.
    """

    key_name: str = Field(
        ...,
        description="Descriptive name for the API key",
        min_length=1,
        max_length=100,
    )
    scopes: list[str] = Field(
        ...,
        description="Scopes granted to the key (scan:file, scan:url, reports:read, reports:write, admin)",
    )
    tier: Tier = Field(Tier.FREE, description="Rate-limit tier")
    expires_in_days: int | None = Field(
        None,
        description="Number of days until the key expires (1-3650, never if omitted)",
        ge=1,
        le=3650,
    )

    @field_validator("key_name")
    @classmethod
    def strip_key_name(cls, value: str) -> str:
        """Strip surrounding whitespace and reject blank names."""
        stripped = value.strip()
        if not stripped:
            raise ValueError("keyName cannot be blank")
        return stripped


class UsageResponse(CamelModel):
    """Usage counters of an API key."""

    total_requests: int = Field(..., description="Requests counted this month")
    requests_today: int = Field(..., description="Requests counted today (UTC)")
    daily_limit: int
    monthly_limit: int
    last_reset_date: date = Field(..., description="UTC date of the last reset")

    @classmethod
    def from_domain(cls, usage: UsageCounters) -> UsageResponse:
        """Convert domain usage counters to API response."""
        return cls(
            total_requests=usage.total_requests,
            requests_today=usage.requests_today,
            daily_limit=usage.daily_limit,
            monthly_limit=usage.monthly_limit,
            last_reset_date=usage.last_reset_date,
        )


class APIKeyResponse(CamelModel):
    """Response model for API key (without secret or hash).

    This response is used for listing API keys. The secret is NEVER
    returned after creation; the key is identified by the tail of its hash.
    """

    key_id: str = Field(..., description="API Key ID (ULID format)")
    key_name: str = Field(..., description="API key name")
    key_suffix: str = Field(..., description="Last characters of the key hash")
    scopes: list[str]
    tier: Tier
    is_active: bool = Field(..., description="False once the key has been revoked")
    created_at: datetime = Field(..., description="When the key was created")
    last_used_at: datetime | None = Field(
        None, description="When the key was last used"
    )
    expires_at: datetime | None = Field(None, description="When the key expires")
    revoked_at: datetime | None = Field(None, description="When the key was revoked")
    usage: UsageResponse

    @classmethod
    def from_domain(cls, api_key: APIKey) -> APIKeyResponse:
        """Convert domain APIKey aggregate to API response.

        Args:
            api_key: APIKey domain aggregate

        Returns:
            APIKeyResponse (without secret or hash)
        """
        return cls(
            key_id=api_key.id.value,
            key_name=api_key.name,
            key_suffix=display_suffix(api_key.key_hash),
            scopes=sorted(scope.value for scope in api_key.scopes),
            tier=api_key.tier,
            is_active=api_key.is_active,
            created_at=api_key.created_at,
            last_used_at=api_key.last_used_at,
            expires_at=api_key.expires_at,
            revoked_at=api_key.revoked_at,
            usage=UsageResponse.from_domain(api_key.usage),
        )


class APIKeyCreatedResponse(CamelModel):
    """Response model for a newly created API key (includes secret).

    The secret is returned ONLY in this response at creation time.
    Store it securely - it cannot be retrieved again.
    """

    api_key: str = Field(
        ...,
        description="The API key secret. SAVE THIS - it cannot be retrieved again.",
    )
    key_id: str
    key_name: str
    scopes: list[str]
    tier: Tier
    daily_limit: int
    monthly_limit: int
    expires_at: datetime | None = None

    @classmethod
    def from_domain(cls, api_key: APIKey, secret: str) -> APIKeyCreatedResponse:
        """Build the one-time creation response."""
        return cls(
            api_key=secret,
            key_id=api_key.id.value,
            key_name=api_key.name,
            scopes=sorted(scope.value for scope in api_key.scopes),
            tier=api_key.tier,
            daily_limit=api_key.usage.daily_limit,
            monthly_limit=api_key.usage.monthly_limit,
            expires_at=api_key.expires_at,
        )

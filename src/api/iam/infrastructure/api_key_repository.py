"""PostgreSQL implementation of IAPIKeyRepository.

This repository handles persistence of API keys to PostgreSQL. Every
public method runs in its own transaction on the injected session.

Concurrency:
- Issuance for one owner is serialized with a transaction-scoped advisory
  lock, and the partial unique index on active names backs it up.
- Locked reads use SELECT ... FOR UPDATE, so validation passes and
  revocations on one key are applied one at a time.
"""

from __future__ import annotations

import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Callable

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from iam.domain.aggregates import APIKey
from iam.domain.aggregates.api_key import KEY_SUFFIX_LENGTH
from iam.domain.value_objects import (
    APIKeyId,
    Scope,
    Tier,
    UsageCounters,
    UserId,
)
from iam.infrastructure.models import ACTIVE_NAME_INDEX, APIKeyModel
from iam.infrastructure.observability import (
    APIKeyRepositoryProbe,
    DefaultAPIKeyRepositoryProbe,
)
from iam.ports.exceptions import (
    APIKeyStoreUnavailableError,
    CorruptAPIKeyRecordError,
    DuplicateAPIKeyNameError,
)
from iam.ports.repositories import IAPIKeyRepository

_KEY_HASH_PATTERN = re.compile(r"^[a-f0-9]{64}$")

# Errors that mean the store could not be reached or did not answer in time.
_TRANSIENT_ERRORS = (SQLAlchemyError, OSError, TimeoutError)


class APIKeyRepository(IAPIKeyRepository):
    """Repository for APIKey aggregate persistence to PostgreSQL.

    The key_hash is stored for authentication lookup, but the plaintext
    secret is never persisted. Rows read back are validated field by field
    before an aggregate is built.
    """

    def __init__(
        self,
        session: AsyncSession,
        probe: APIKeyRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with database session.

        Args:
            session: AsyncSession from FastAPI dependency injection
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultAPIKeyRepositoryProbe()

    async def add(
        self,
        api_key: APIKey,
        admission_check: Callable[[list[APIKey]], None],
    ) -> None:
        """Persist a newly issued API key after checking the owner's active keys.

        Args:
            api_key: The new APIKey aggregate
            admission_check: Issuance rule applied to the owner's active keys

        Raises:
            DuplicateAPIKeyNameError: If an active key of the owner has the same name
            APIKeyStoreUnavailableError: If the database fails
        """
        owner_id = api_key.owner_id.value
        try:
            async with self._session.begin():
                await self._session.execute(
                    select(func.pg_advisory_xact_lock(func.hashtext(owner_id)))
                )
                result = await self._session.execute(
                    select(APIKeyModel).where(
                        APIKeyModel.owner_id == owner_id,
                        APIKeyModel.is_active.is_(True),
                    )
                )
                active_keys = [self._to_aggregate(m) for m in result.scalars().all()]

                admission_check(active_keys)

                self._session.add(self._to_model(api_key))
                await self._session.flush()
        except IntegrityError as e:
            if ACTIVE_NAME_INDEX in str(e.orig):
                self._probe.duplicate_api_key_name(api_key.name, owner_id)
                raise DuplicateAPIKeyNameError(
                    f'An API key with the name "{api_key.name}" already exists'
                ) from e
            self._probe.store_error("add", str(e))
            raise APIKeyStoreUnavailableError("Failed to store API key") from e
        except _TRANSIENT_ERRORS as e:
            self._probe.store_error("add", str(e))
            raise APIKeyStoreUnavailableError("Failed to store API key") from e

        self._probe.api_key_added(api_key.id.value, owner_id)

    def lock_by_id(self, api_key_id: APIKeyId):
        """Load an API key by ID with a row lock held until the context exits."""
        stmt = select(APIKeyModel).where(APIKeyModel.id == api_key_id.value)
        return self._locked(stmt, lookup=api_key_id.value)

    def lock_by_key_hash(self, key_hash: str):
        """Load an API key by secret hash with a row lock held until the context exits."""
        stmt = select(APIKeyModel).where(APIKeyModel.key_hash == key_hash)
        return self._locked(stmt, lookup=key_hash[-KEY_SUFFIX_LENGTH:])

    async def list_by_owner(self, owner_id: UserId) -> list[APIKey]:
        """List every API key of an owner, newest first."""
        stmt = (
            select(APIKeyModel)
            .where(APIKeyModel.owner_id == owner_id.value)
            .order_by(APIKeyModel.created_at.desc(), APIKeyModel.id.desc())
        )
        try:
            async with self._session.begin():
                result = await self._session.execute(stmt)
                api_keys = [self._to_aggregate(m) for m in result.scalars().all()]
        except _TRANSIENT_ERRORS as e:
            self._probe.store_error("list_by_owner", str(e))
            raise APIKeyStoreUnavailableError("Failed to list API keys") from e

        self._probe.api_key_list_retrieved(owner_id.value, len(api_keys))
        return api_keys

    @asynccontextmanager
    async def _locked(
        self, stmt: Select[tuple[APIKeyModel]], lookup: str
    ) -> AsyncIterator[APIKey | None]:
        """Run the caller's block inside a transaction holding a row lock.

        Changes to the yielded aggregate are copied onto the row when the
        block completes. An exception or cancellation inside the block rolls
        the transaction back.
        """
        try:
            async with self._session.begin():
                result = await self._session.execute(stmt.with_for_update())
                model = result.scalar_one_or_none()

                if model is None:
                    self._probe.api_key_not_found(lookup)
                    yield None
                    return

                api_key = self._to_aggregate(model)
                yield api_key

                self._apply_changes(model, api_key)
                await self._session.flush()
                self._probe.api_key_updated(api_key.id.value)
        except _TRANSIENT_ERRORS as e:
            self._probe.store_error("lock", str(e))
            raise APIKeyStoreUnavailableError("API key store unavailable") from e

    @staticmethod
    def _apply_changes(model: APIKeyModel, api_key: APIKey) -> None:
        """Copy the mutable fields of the aggregate onto its row."""
        model.is_active = api_key.is_active
        model.revoked_at = api_key.revoked_at
        model.last_used_at = api_key.last_used_at
        model.total_requests = api_key.usage.total_requests
        model.requests_today = api_key.usage.requests_today
        model.last_reset_date = api_key.usage.last_reset_date

    @staticmethod
    def _to_model(api_key: APIKey) -> APIKeyModel:
        """Convert a new domain aggregate to its row."""
        return APIKeyModel(
            id=api_key.id.value,
            owner_id=api_key.owner_id.value,
            name=api_key.name,
            key_hash=api_key.key_hash,
            scopes=sorted(scope.value for scope in api_key.scopes),
            tier=api_key.tier.value,
            is_active=api_key.is_active,
            created_at=api_key.created_at,
            expires_at=api_key.expires_at,
            last_used_at=api_key.last_used_at,
            revoked_at=api_key.revoked_at,
            total_requests=api_key.usage.total_requests,
            requests_today=api_key.usage.requests_today,
            daily_limit=api_key.usage.daily_limit,
            monthly_limit=api_key.usage.monthly_limit,
            last_reset_date=api_key.usage.last_reset_date,
        )

    def _to_aggregate(self, model: APIKeyModel) -> APIKey:
        """Convert SQLAlchemy model to domain aggregate.

        Raises:
            CorruptAPIKeyRecordError: If any field does not match the schema
        """
        try:
            return _record_to_aggregate(model)
        except (TypeError, ValueError) as e:
            self._probe.corrupt_record(str(model.id), str(e))
            raise CorruptAPIKeyRecordError(
                f"API key record {model.id} is invalid: {e}"
            ) from e


def _record_to_aggregate(model: APIKeyModel) -> APIKey:
    if not isinstance(model.key_hash, str) or not _KEY_HASH_PATTERN.match(
        model.key_hash
    ):
        raise ValueError("key_hash is not a SHA-256 hex digest")

    if not isinstance(model.name, str) or not model.name.strip():
        raise ValueError("name is blank")

    if not isinstance(model.is_active, bool):
        raise TypeError("is_active is not a boolean")

    for field_name in ("total_requests", "requests_today"):
        value = getattr(model, field_name)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError(f"{field_name} must be a non-negative integer")

    for field_name in ("daily_limit", "monthly_limit"):
        value = getattr(model, field_name)
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ValueError(f"{field_name} must be a positive integer")

    for field_name in ("created_at", "expires_at", "last_used_at", "revoked_at"):
        value = getattr(model, field_name)
        if value is None and field_name != "created_at":
            continue
        if not isinstance(value, datetime) or value.tzinfo is None:
            raise ValueError(f"{field_name} must be a timezone-aware datetime")

    if not isinstance(model.last_reset_date, date) or isinstance(
        model.last_reset_date, datetime
    ):
        raise TypeError("last_reset_date is not a date")

    return APIKey(
        id=APIKeyId.from_string(model.id),
        owner_id=UserId.from_string(model.owner_id),
        name=model.name,
        key_hash=model.key_hash,
        scopes=Scope.parse_many(model.scopes or []),
        tier=Tier(model.tier),
        created_at=model.created_at,
        usage=UsageCounters(
            total_requests=model.total_requests,
            requests_today=model.requests_today,
            daily_limit=model.daily_limit,
            monthly_limit=model.monthly_limit,
            last_reset_date=model.last_reset_date,
        ),
        expires_at=model.expires_at,
        last_used_at=model.last_used_at,
        is_active=model.is_active,
        revoked_at=model.revoked_at,
    )

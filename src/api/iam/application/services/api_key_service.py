"""API Key application service for IAM bounded context.

Orchestrates API key lifecycle management including issuance, listing,
and revocation with proper security handling.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from functools import partial
from typing import Callable

from iam.application.observability.api_key_service_probe import (
    APIKeyServiceProbe,
    DefaultAPIKeyServiceProbe,
)
from iam.application.security import generate_api_key_secret, hash_api_key_secret
from iam.application.value_objects import CurrentUser
from iam.domain.aggregates import APIKey
from iam.domain.policies import MAX_ACTIVE_KEYS_PER_OWNER, check_issuance
from iam.domain.value_objects import APIKeyId, Scope, Tier
from iam.ports.exceptions import (
    APIKeyNotFoundError,
    APIKeyOwnershipError,
    InvalidAPIKeyNameError,
    InvalidScopeError,
)
from iam.ports.repositories import IAPIKeyRepository


def _utc_now() -> datetime:
    return datetime.now(UTC)


class APIKeyService:
    """Application service for API key management.

    Orchestrates API key issuance, listing, and revocation. The repository
    owns the transactions; this service decides what goes into them.
    """

    def __init__(
        self,
        api_key_repository: IAPIKeyRepository,
        probe: APIKeyServiceProbe | None = None,
        max_active_keys: int = MAX_ACTIVE_KEYS_PER_OWNER,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize APIKeyService with dependencies.

        Args:
            api_key_repository: Repository for API key persistence
            probe: Optional domain probe for observability
            max_active_keys: Cap on active keys for non-admin owners
            clock: Source of the current UTC time
        """
        self._api_key_repository = api_key_repository
        self._probe = probe or DefaultAPIKeyServiceProbe()
        self._max_active_keys = max_active_keys
        self._clock = clock

    async def create_api_key(
        self,
        current_user: CurrentUser,
        name: str,
        scopes: list[str],
        tier: Tier = Tier.FREE,
        expires_in_days: int | None = None,
    ) -> tuple[APIKey, str]:
        """Issue a new API key for the current user.

        Generates a secure secret, hashes it, creates the aggregate,
        and persists it. Returns both the aggregate and the plaintext
        secret - the secret is only available at creation time.

        Args:
            current_user: The owner of the new key
            name: A descriptive name for the key
            scopes: Requested scope names
            tier: Rate-limit profile of the key
            expires_in_days: Optional number of days until expiration

        Returns:
            Tuple of (APIKey aggregate, plaintext_secret)

        Raises:
            InvalidAPIKeyNameError: If the name is blank
            InvalidScopeError: If no scope or an unknown scope is requested
            APIKeyQuotaExceededError: If a non-admin owner is at the active key cap
            DuplicateAPIKeyNameError: If an active key of the owner has the name
        """
        try:
            name = name.strip()
            if not name:
                raise InvalidAPIKeyNameError("API key name cannot be blank")

            try:
                granted = Scope.parse_many(scopes)
            except ValueError as e:
                raise InvalidScopeError(str(e)) from e

            now = self._clock()
            expires_at = (
                now + timedelta(days=expires_in_days)
                if expires_in_days is not None
                else None
            )

            plaintext_secret = generate_api_key_secret()
            api_key = APIKey.create(
                owner_id=current_user.user_id,
                name=name,
                key_hash=hash_api_key_secret(plaintext_secret),
                scopes=granted,
                tier=tier,
                expires_at=expires_at,
                now=now,
            )

            await self._api_key_repository.add(
                api_key,
                admission_check=partial(
                    check_issuance,
                    name=name,
                    is_admin=current_user.is_admin,
                    max_active_keys=self._max_active_keys,
                ),
            )

            self._probe.api_key_created(
                api_key_id=api_key.id.value,
                user_id=current_user.user_id.value,
                name=name,
                tier=tier.value,
            )
            return api_key, plaintext_secret

        except Exception as e:
            self._probe.api_key_creation_failed(
                user_id=current_user.user_id.value,
                error=str(e),
            )
            raise

    async def list_api_keys(self, current_user: CurrentUser) -> list[APIKey]:
        """List every API key of the current user, newest first.

        Revoked keys are included so owners can see their history.
        """
        try:
            keys = await self._api_key_repository.list_by_owner(current_user.user_id)

            self._probe.api_key_list_retrieved(
                user_id=current_user.user_id.value,
                count=len(keys),
            )
            return keys
        except Exception as e:
            self._probe.api_key_list_retrieval_failed(
                user_id=current_user.user_id.value,
                reason=repr(e),
            )
            raise

    async def revoke_api_key(
        self,
        api_key_id: APIKeyId,
        current_user: CurrentUser,
    ) -> None:
        """Revoke an API key.

        Marks the key as inactive so it can no longer be used. Revoking a
        key that is already revoked succeeds and keeps the original
        revocation time.

        Args:
            api_key_id: The ID of the key to revoke
            current_user: The user requesting the revocation

        Raises:
            APIKeyNotFoundError: If the key doesn't exist
            APIKeyOwnershipError: If the key belongs to another user
        """
        try:
            async with self._api_key_repository.lock_by_id(api_key_id) as api_key:
                if api_key is None:
                    raise APIKeyNotFoundError(f"API key {api_key_id.value} not found")

                if not api_key.is_owned_by(current_user.user_id):
                    raise APIKeyOwnershipError(
                        f"API key {api_key_id.value} belongs to another user"
                    )

                revoked = api_key.revoke(self._clock())

            if revoked:
                self._probe.api_key_revoked(
                    api_key_id=api_key_id.value,
                    user_id=current_user.user_id.value,
                )
            else:
                self._probe.api_key_already_revoked(
                    api_key_id=api_key_id.value,
                    user_id=current_user.user_id.value,
                )

        except Exception as e:
            self._probe.api_key_revocation_failed(
                api_key_id=api_key_id.value,
                error=str(e),
            )
            raise

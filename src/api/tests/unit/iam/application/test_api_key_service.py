"""Unit tests for APIKeyService."""

from contextlib import asynccontextmanager
from datetime import timedelta
from unittest.mock import AsyncMock, create_autospec

import pytest

from iam.application.observability.api_key_service_probe import APIKeyServiceProbe
from iam.application.security import hash_api_key_secret, is_valid_api_key_format
from iam.application.services.api_key_service import APIKeyService
from iam.application.value_objects import CurrentUser
from iam.domain.aggregates import APIKey
from iam.domain.value_objects import APIKeyId, Scope, Tier, UserId
from iam.infrastructure.in_memory_api_key_repository import InMemoryAPIKeyRepository
from iam.ports.exceptions import (
    APIKeyNotFoundError,
    APIKeyOwnershipError,
    APIKeyQuotaExceededError,
    APIKeyStoreUnavailableError,
    DuplicateAPIKeyNameError,
    InvalidAPIKeyNameError,
    InvalidScopeError,
)
from iam.ports.repositories import IAPIKeyRepository


def _locking(api_key: APIKey | None):
    """Build a lock_by_id stand-in yielding the given aggregate."""

    @asynccontextmanager
    async def lock(_api_key_id):
        yield api_key

    return lock


@pytest.fixture
def mock_probe():
    """Create mock API key service probe."""
    return create_autospec(APIKeyServiceProbe, instance=True)


@pytest.fixture
def repository() -> InMemoryAPIKeyRepository:
    return InMemoryAPIKeyRepository()


@pytest.fixture
def api_key_service(repository, mock_probe, clock) -> APIKeyService:
    """Create APIKeyService over an in-memory store."""
    return APIKeyService(
        api_key_repository=repository,
        probe=mock_probe,
        max_active_keys=3,
        clock=clock,
    )


@pytest.fixture
def current_user(owner_id: UserId) -> CurrentUser:
    return CurrentUser(user_id=owner_id)


class TestAPIKeyServiceInit:
    def test_uses_default_probe_when_not_provided(self):
        repo = create_autospec(IAPIKeyRepository, instance=True)

        service = APIKeyService(api_key_repository=repo)

        assert service._probe is not None


class TestAPIKeyServiceCreate:
    """Tests for create_api_key method."""

    @pytest.mark.asyncio
    async def test_returns_plaintext_once_and_stores_hash(
        self, api_key_service, repository, current_user
    ):
        api_key, secret = await api_key_service.create_api_key(
            current_user=current_user,
            name="CI",
            scopes=["scan:file"],
        )

        assert is_valid_api_key_format(secret)
        assert api_key.key_hash == hash_api_key_secret(secret)
        assert secret not in repr(api_key)

        stored = await repository.list_by_owner(current_user.user_id)
        assert [key.id for key in stored] == [api_key.id]

    @pytest.mark.asyncio
    async def test_applies_tier_and_expiry(
        self, api_key_service, current_user, issued_at
    ):
        api_key, _ = await api_key_service.create_api_key(
            current_user=current_user,
            name="Pro key",
            scopes=["scan:url"],
            tier=Tier.PRO,
            expires_in_days=30,
        )

        assert api_key.tier is Tier.PRO
        assert api_key.usage.daily_limit == 1_000
        assert api_key.expires_at == issued_at + timedelta(days=30)

    @pytest.mark.asyncio
    async def test_records_creation_on_probe(
        self, api_key_service, mock_probe, current_user
    ):
        api_key, _ = await api_key_service.create_api_key(
            current_user=current_user, name="CI", scopes=["scan:file"]
        )

        mock_probe.api_key_created.assert_called_once_with(
            api_key_id=api_key.id.value,
            user_id=current_user.user_id.value,
            name="CI",
            tier="FREE",
        )

    @pytest.mark.asyncio
    async def test_stores_stripped_name(
        self, api_key_service, repository, current_user
    ):
        api_key, _ = await api_key_service.create_api_key(
            current_user=current_user, name="  CI  ", scopes=["scan:file"]
        )

        assert api_key.name == "CI"
        assert repository._keys[api_key.id.value].name == "CI"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", "\t\n"])
    async def test_blank_name_rejected(
        self, api_key_service, repository, mock_probe, current_user, name
    ):
        with pytest.raises(InvalidAPIKeyNameError):
            await api_key_service.create_api_key(
                current_user=current_user, name=name, scopes=["scan:file"]
            )

        assert repository._keys == {}
        mock_probe.api_key_creation_failed.assert_called_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("scopes", [[], ["scan:everything"]])
    async def test_rejects_invalid_scopes(
        self, api_key_service, mock_probe, current_user, scopes
    ):
        with pytest.raises(InvalidScopeError):
            await api_key_service.create_api_key(
                current_user=current_user, name="CI", scopes=scopes
            )

        mock_probe.api_key_creation_failed.assert_called_once()

    @pytest.mark.asyncio
    async def test_rejects_duplicate_active_name(self, api_key_service, current_user):
        await api_key_service.create_api_key(
            current_user=current_user, name="Production", scopes=["scan:file"]
        )

        with pytest.raises(DuplicateAPIKeyNameError):
            await api_key_service.create_api_key(
                current_user=current_user, name="production", scopes=["scan:file"]
            )

    @pytest.mark.asyncio
    async def test_name_reusable_after_revocation(self, api_key_service, current_user):
        first, _ = await api_key_service.create_api_key(
            current_user=current_user, name="Production", scopes=["scan:file"]
        )
        await api_key_service.revoke_api_key(first.id, current_user)

        second, _ = await api_key_service.create_api_key(
            current_user=current_user, name="Production", scopes=["scan:file"]
        )

        assert second.id != first.id

    @pytest.mark.asyncio
    async def test_enforces_active_key_cap(self, api_key_service, current_user):
        for index in range(3):
            await api_key_service.create_api_key(
                current_user=current_user, name=f"key-{index}", scopes=["scan:file"]
            )

        with pytest.raises(APIKeyQuotaExceededError):
            await api_key_service.create_api_key(
                current_user=current_user, name="key-3", scopes=["scan:file"]
            )

    @pytest.mark.asyncio
    async def test_admin_exempt_from_cap(self, api_key_service, owner_id):
        admin = CurrentUser(user_id=owner_id, is_admin=True)
        for index in range(4):
            await api_key_service.create_api_key(
                current_user=admin, name=f"key-{index}", scopes=["admin"]
            )

    @pytest.mark.asyncio
    async def test_propagates_store_failure(self, mock_probe, current_user, clock):
        repo = create_autospec(IAPIKeyRepository, instance=True)
        repo.add = AsyncMock(side_effect=APIKeyStoreUnavailableError("down"))
        service = APIKeyService(api_key_repository=repo, probe=mock_probe, clock=clock)

        with pytest.raises(APIKeyStoreUnavailableError):
            await service.create_api_key(
                current_user=current_user, name="CI", scopes=["scan:file"]
            )

        mock_probe.api_key_creation_failed.assert_called_once_with(
            user_id=current_user.user_id.value, error="down"
        )


class TestAPIKeyServiceList:
    @pytest.mark.asyncio
    async def test_lists_only_own_keys_including_revoked(
        self, api_key_service, current_user
    ):
        revoked, _ = await api_key_service.create_api_key(
            current_user=current_user, name="old", scopes=["scan:file"]
        )
        await api_key_service.revoke_api_key(revoked.id, current_user)
        await api_key_service.create_api_key(
            current_user=CurrentUser(user_id=UserId(value="other")),
            name="theirs",
            scopes=["scan:file"],
        )

        keys = await api_key_service.list_api_keys(current_user)

        assert [key.id for key in keys] == [revoked.id]
        assert keys[0].is_active is False


class TestAPIKeyServiceRevoke:
    """Tests for revoke_api_key method."""

    @pytest.mark.asyncio
    async def test_revokes_own_key(
        self, api_key_service, repository, mock_probe, current_user, issued_at
    ):
        api_key, _ = await api_key_service.create_api_key(
            current_user=current_user, name="CI", scopes=["scan:file"]
        )

        await api_key_service.revoke_api_key(api_key.id, current_user)

        [stored] = await repository.list_by_owner(current_user.user_id)
        assert stored.is_active is False
        assert stored.revoked_at == issued_at
        mock_probe.api_key_revoked.assert_called_once()

    @pytest.mark.asyncio
    async def test_revoke_is_idempotent(
        self, api_key_service, repository, mock_probe, current_user, clock
    ):
        api_key, _ = await api_key_service.create_api_key(
            current_user=current_user, name="CI", scopes=["scan:file"]
        )
        await api_key_service.revoke_api_key(api_key.id, current_user)
        first_revoked_at = clock.now
        clock.now += timedelta(hours=2)

        await api_key_service.revoke_api_key(api_key.id, current_user)

        [stored] = await repository.list_by_owner(current_user.user_id)
        assert stored.revoked_at == first_revoked_at
        mock_probe.api_key_already_revoked.assert_called_once()

    @pytest.mark.asyncio
    async def test_raises_not_found(self, api_key_service, mock_probe, current_user):
        with pytest.raises(APIKeyNotFoundError):
            await api_key_service.revoke_api_key(APIKeyId.generate(), current_user)

        mock_probe.api_key_revocation_failed.assert_called_once()

    @pytest.mark.asyncio
    async def test_rejects_other_owner(self, mock_probe, api_key, clock):
        repo = create_autospec(IAPIKeyRepository, instance=True)
        repo.lock_by_id = _locking(api_key)
        service = APIKeyService(api_key_repository=repo, probe=mock_probe, clock=clock)
        intruder = CurrentUser(user_id=UserId(value="intruder"))

        with pytest.raises(APIKeyOwnershipError):
            await service.revoke_api_key(api_key.id, intruder)

        assert api_key.is_active is True
        mock_probe.api_key_revoked.assert_not_called()

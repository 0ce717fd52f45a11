"""Unit tests for InMemoryAPIKeyRepository."""

import asyncio
from datetime import timedelta

import pytest

from iam.domain.aggregates import APIKey
from iam.domain.value_objects import APIKeyId, UserId
from iam.infrastructure.in_memory_api_key_repository import InMemoryAPIKeyRepository
from iam.ports.exceptions import DuplicateAPIKeyNameError
from iam.ports.repositories import IAPIKeyRepository


def _admit_all(_active_keys):
    return None


@pytest.fixture
def repository() -> InMemoryAPIKeyRepository:
    return InMemoryAPIKeyRepository()


def test_implements_protocol(repository):
    assert isinstance(repository, IAPIKeyRepository)


class TestAdd:
    @pytest.mark.asyncio
    async def test_admission_check_sees_active_keys_only(
        self, repository, api_key: APIKey
    ):
        await repository.add(api_key, admission_check=_admit_all)
        async with repository.lock_by_id(api_key.id) as stored:
            stored.revoke()
        seen: list[list[APIKey]] = []

        second = APIKey.create(
            owner_id=api_key.owner_id,
            name="Second",
            key_hash="f" * 64,
            scopes=api_key.scopes,
            tier=api_key.tier,
        )
        await repository.add(second, admission_check=seen.append)

        assert seen == [[]]

    @pytest.mark.asyncio
    async def test_rejects_duplicate_active_name(self, repository, api_key: APIKey):
        await repository.add(api_key, admission_check=_admit_all)
        clash = APIKey.create(
            owner_id=api_key.owner_id,
            name=api_key.name.upper(),
            key_hash="e" * 64,
            scopes=api_key.scopes,
            tier=api_key.tier,
        )

        with pytest.raises(DuplicateAPIKeyNameError):
            await repository.add(clash, admission_check=_admit_all)

    @pytest.mark.asyncio
    async def test_concurrent_issuance_keeps_names_unique(
        self, repository, api_key: APIKey
    ):
        """Two issuances racing for one name leave exactly one active key."""
        twins = [
            APIKey.create(
                owner_id=api_key.owner_id,
                name="Race",
                key_hash=f"{index:064x}",
                scopes=api_key.scopes,
                tier=api_key.tier,
            )
            for index in range(2)
        ]

        results = await asyncio.gather(
            *(repository.add(twin, admission_check=_admit_all) for twin in twins),
            return_exceptions=True,
        )

        assert sum(isinstance(r, DuplicateAPIKeyNameError) for r in results) == 1
        assert len(await repository.list_by_owner(api_key.owner_id)) == 1


class TestLocking:
    @pytest.mark.asyncio
    async def test_unknown_id_yields_none(self, repository):
        async with repository.lock_by_id(APIKeyId.generate()) as stored:
            assert stored is None

    @pytest.mark.asyncio
    async def test_changes_written_back_on_success(self, repository, api_key):
        await repository.add(api_key, admission_check=_admit_all)

        async with repository.lock_by_key_hash(api_key.key_hash) as stored:
            stored.revoke()

        [reloaded] = await repository.list_by_owner(api_key.owner_id)
        assert reloaded.is_active is False

    @pytest.mark.asyncio
    async def test_changes_discarded_on_exception(self, repository, api_key):
        await repository.add(api_key, admission_check=_admit_all)

        with pytest.raises(RuntimeError):
            async with repository.lock_by_id(api_key.id) as stored:
                stored.revoke()
                raise RuntimeError("boom")

        [reloaded] = await repository.list_by_owner(api_key.owner_id)
        assert reloaded.is_active is True

    @pytest.mark.asyncio
    async def test_callers_get_copies(self, repository, api_key):
        await repository.add(api_key, admission_check=_admit_all)
        api_key.revoke()

        [reloaded] = await repository.list_by_owner(api_key.owner_id)
        reloaded.name = "mutated"

        [again] = await repository.list_by_owner(api_key.owner_id)
        assert again.is_active is True
        assert again.name == "CI Scanner"


class TestListByOwner:
    @pytest.mark.asyncio
    async def test_newest_first_and_scoped_to_owner(self, repository, api_key):
        newer = APIKey.create(
            owner_id=api_key.owner_id,
            name="Newer",
            key_hash="d" * 64,
            scopes=api_key.scopes,
            tier=api_key.tier,
            now=api_key.created_at + timedelta(minutes=1),
        )
        foreign = APIKey.create(
            owner_id=UserId(value="someone-else"),
            name="Theirs",
            key_hash="c" * 64,
            scopes=api_key.scopes,
            tier=api_key.tier,
        )
        for key in (api_key, newer, foreign):
            await repository.add(key, admission_check=_admit_all)

        keys = await repository.list_by_owner(api_key.owner_id)

        assert [key.id for key in keys] == [newer.id, api_key.id]

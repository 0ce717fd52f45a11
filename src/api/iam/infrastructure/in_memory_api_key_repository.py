"""In-process implementation of IAPIKeyRepository.

Holds API keys in a dictionary guarded by asyncio locks. State lives in a
single process and is lost on restart, so this store suits development,
tests and single-instance deployments only. Deployments with more than one
worker must use the PostgreSQL repository.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Callable

from iam.domain.aggregates import APIKey
from iam.domain.aggregates.api_key import KEY_SUFFIX_LENGTH
from iam.domain.policies import normalize_key_name
from iam.domain.value_objects import APIKeyId, UserId
from iam.infrastructure.observability import (
    APIKeyRepositoryProbe,
    DefaultAPIKeyRepositoryProbe,
)
from iam.ports.exceptions import DuplicateAPIKeyNameError
from iam.ports.repositories import IAPIKeyRepository


class InMemoryAPIKeyRepository(IAPIKeyRepository):
    """Repository keeping APIKey aggregates in process memory.

    Callers always work on copies. A locked copy replaces the stored
    aggregate only when the lock context exits without an exception.
    """

    def __init__(self, probe: APIKeyRepositoryProbe | None = None) -> None:
        self._probe = probe or DefaultAPIKeyRepositoryProbe()
        self._keys: dict[str, APIKey] = {}
        self._ids_by_hash: dict[str, str] = {}
        self._key_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._owner_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def add(
        self,
        api_key: APIKey,
        admission_check: Callable[[list[APIKey]], None],
    ) -> None:
        """Persist a newly issued API key after checking the owner's active keys."""
        owner_id = api_key.owner_id.value
        async with self._owner_locks[owner_id]:
            active_keys = [
                replace(key)
                for key in self._keys.values()
                if key.owner_id == api_key.owner_id and key.is_active
            ]
            # Suspension point; issuances for one owner serialize on the lock.
            await asyncio.sleep(0)

            admission_check(active_keys)

            wanted = normalize_key_name(api_key.name)
            if any(normalize_key_name(key.name) == wanted for key in active_keys):
                self._probe.duplicate_api_key_name(api_key.name, owner_id)
                raise DuplicateAPIKeyNameError(
                    f'An API key with the name "{api_key.name}" already exists'
                )

            self._keys[api_key.id.value] = replace(api_key)
            self._ids_by_hash[api_key.key_hash] = api_key.id.value

        self._probe.api_key_added(api_key.id.value, owner_id)

    def lock_by_id(self, api_key_id: APIKeyId):
        """Load an API key by ID with its lock held until the context exits."""
        return self._locked(api_key_id.value, lookup=api_key_id.value)

    def lock_by_key_hash(self, key_hash: str):
        """Load an API key by secret hash with its lock held until the context exits."""
        return self._locked(
            self._ids_by_hash.get(key_hash), lookup=key_hash[-KEY_SUFFIX_LENGTH:]
        )

    async def list_by_owner(self, owner_id: UserId) -> list[APIKey]:
        """List every API key of an owner, newest first."""
        api_keys = sorted(
            (replace(key) for key in self._keys.values() if key.owner_id == owner_id),
            key=lambda key: (key.created_at, key.id.value),
            reverse=True,
        )
        self._probe.api_key_list_retrieved(owner_id.value, len(api_keys))
        return api_keys

    @asynccontextmanager
    async def _locked(
        self, api_key_id: str | None, lookup: str
    ) -> AsyncIterator[APIKey | None]:
        if api_key_id is None or api_key_id not in self._keys:
            self._probe.api_key_not_found(lookup)
            yield None
            return

        async with self._key_locks[api_key_id]:
            # Read after a yield point so waiting passes see the previous write.
            await asyncio.sleep(0)
            working = replace(self._keys[api_key_id])

            yield working

            self._keys[api_key_id] = working
            self._probe.api_key_updated(api_key_id)

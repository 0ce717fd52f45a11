"""Repository protocols (ports) for IAM bounded context.

Repository protocols define the interface for persisting and retrieving
API key aggregates. Implementations own their transactions: every method
either commits as a whole or leaves the store untouched.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Callable, Protocol, runtime_checkable

from iam.domain.aggregates import APIKey
from iam.domain.value_objects import APIKeyId, UserId


@runtime_checkable
class IAPIKeyRepository(Protocol):
    """Repository for APIKey aggregate persistence.

    Only the hash of a key secret is ever handed to the repository. Records
    read back from the store are validated field by field before an
    aggregate is built from them.

    Store failures surface as APIKeyStoreUnavailableError and records that
    fail validation as CorruptAPIKeyRecordError.
    """

    async def add(
        self,
        api_key: APIKey,
        admission_check: Callable[[list[APIKey]], None],
    ) -> None:
        """Persist a newly issued API key.

        The owner's active keys are loaded and passed to ``admission_check``
        while no other issuance for the same owner can interleave. If the
        check raises, nothing is written and the exception propagates.

        Args:
            api_key: The new APIKey aggregate
            admission_check: Issuance rule applied to the owner's active keys

        Raises:
            DuplicateAPIKeyNameError: If an active key of the owner has the same name
            APIKeyQuotaExceededError: If raised by the admission check
        """
        ...

    def lock_by_id(
        self, api_key_id: APIKeyId
    ) -> AbstractAsyncContextManager[APIKey | None]:
        """Load an API key by ID for exclusive modification.

        No other lock on the same key is granted until the context exits.
        Changes made to the yielded aggregate are written back when the
        context exits normally and discarded when it exits with an exception.

        Args:
            api_key_id: The unique identifier of the API key

        Returns:
            A context manager yielding the APIKey, or None if not found
        """
        ...

    def lock_by_key_hash(
        self, key_hash: str
    ) -> AbstractAsyncContextManager[APIKey | None]:
        """Load an API key by secret hash for exclusive modification.

        Same locking and write-back rules as ``lock_by_id``.

        Args:
            key_hash: The hash of the presented secret

        Returns:
            A context manager yielding the APIKey, or None if not found
        """
        ...

    async def list_by_owner(self, owner_id: UserId) -> list[APIKey]:
        """List every API key of an owner, revoked keys included.

        Args:
            owner_id: The owner to list keys for

        Returns:
            APIKey aggregates, newest first
        """
        ...

"""API key service, validator and repository providers."""

from functools import lru_cache
from typing import Annotated, AsyncGenerator

from fastapi import Depends

from iam.application.observability import (
    APIKeyServiceProbe,
    APIKeyValidatorProbe,
    DefaultAPIKeyServiceProbe,
    DefaultAPIKeyValidatorProbe,
)
from iam.application.services import APIKeyService, APIKeyValidator
from iam.infrastructure.api_key_repository import APIKeyRepository
from iam.infrastructure.in_memory_api_key_repository import InMemoryAPIKeyRepository
from iam.ports.repositories import IAPIKeyRepository
from infrastructure.database.dependencies import get_write_sessionmaker
from infrastructure.settings import (
    APIKeySettings,
    APIKeyStoreBackend,
    get_api_key_settings,
)


def get_api_key_service_probe() -> APIKeyServiceProbe:
    """Get APIKeyServiceProbe instance.

    Returns:
        DefaultAPIKeyServiceProbe instance for observability
    """
    return DefaultAPIKeyServiceProbe()


def get_api_key_validator_probe() -> APIKeyValidatorProbe:
    """Get APIKeyValidatorProbe instance.

    Returns:
        DefaultAPIKeyValidatorProbe instance for observability
    """
    return DefaultAPIKeyValidatorProbe()


@lru_cache
def get_in_memory_api_key_repository() -> InMemoryAPIKeyRepository:
    """Get the process-wide in-memory API key store.

    Cached so every request of this process sees the same keys and locks.
    """
    return InMemoryAPIKeyRepository()


async def get_api_key_repository(
    settings: Annotated[APIKeySettings, Depends(get_api_key_settings)],
) -> AsyncGenerator[IAPIKeyRepository, None]:
    """Get the API key repository for the configured store backend.

    The PostgreSQL repository gets a session of its own that is closed
    when the request finishes.

    Yields:
        IAPIKeyRepository implementation
    """
    if settings.store_backend is APIKeyStoreBackend.MEMORY:
        yield get_in_memory_api_key_repository()
        return

    async with get_write_sessionmaker()() as session:
        yield APIKeyRepository(session=session)


def get_api_key_service(
    api_key_repo: Annotated[IAPIKeyRepository, Depends(get_api_key_repository)],
    probe: Annotated[APIKeyServiceProbe, Depends(get_api_key_service_probe)],
    settings: Annotated[APIKeySettings, Depends(get_api_key_settings)],
) -> APIKeyService:
    """Get APIKeyService instance.

    Args:
        api_key_repo: API key repository
        probe: API key service probe for observability
        settings: API key settings

    Returns:
        APIKeyService instance
    """
    return APIKeyService(
        api_key_repository=api_key_repo,
        probe=probe,
        max_active_keys=settings.max_active_keys_per_owner,
    )


def get_api_key_validator(
    api_key_repo: Annotated[IAPIKeyRepository, Depends(get_api_key_repository)],
    probe: Annotated[APIKeyValidatorProbe, Depends(get_api_key_validator_probe)],
    settings: Annotated[APIKeySettings, Depends(get_api_key_settings)],
) -> APIKeyValidator:
    """Get APIKeyValidator instance.

    Args:
        api_key_repo: API key repository
        probe: API key validator probe for observability
        settings: API key settings

    Returns:
        APIKeyValidator instance
    """
    return APIKeyValidator(
        api_key_repository=api_key_repo,
        probe=probe,
        max_attempts=settings.store_retry_attempts,
        backoff_seconds=settings.store_retry_backoff_seconds,
    )

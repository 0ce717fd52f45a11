"""Domain probe for API key repository operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to API key repository operations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class APIKeyRepositoryProbe(Protocol):
    """Domain probe for API key repository operations.

    Records domain events during API key persistence operations.
    """

    def api_key_added(self, api_key_id: str, owner_id: str) -> None:
        """Record that a new API key was persisted."""
        ...

    def api_key_updated(self, api_key_id: str) -> None:
        """Record that a locked API key was written back."""
        ...

    def api_key_not_found(self, lookup: str) -> None:
        """Record that no API key matched a lookup.

        Args:
            lookup: The key ID, or the tail of the hash for hash lookups.
                The full hash is never logged.
        """
        ...

    def api_key_list_retrieved(self, owner_id: str, count: int) -> None:
        """Record that API keys were listed for an owner."""
        ...

    def duplicate_api_key_name(self, name: str, owner_id: str) -> None:
        """Record that a duplicate active API key name was detected."""
        ...

    def corrupt_record(self, api_key_id: str, error: str) -> None:
        """Record that a stored API key failed validation on read."""
        ...

    def store_error(self, operation: str, error: str) -> None:
        """Record that the store failed during an operation."""
        ...

    def with_context(self, context: ObservationContext) -> APIKeyRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAPIKeyRepositoryProbe:
    """Default implementation of APIKeyRepositoryProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultAPIKeyRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultAPIKeyRepositoryProbe(logger=self._logger, context=context)

    def api_key_added(self, api_key_id: str, owner_id: str) -> None:
        """Record that a new API key was persisted."""
        self._logger.info(
            "api_key_added",
            api_key_id=api_key_id,
            owner_id=owner_id,
            **self._get_context_kwargs(),
        )

    def api_key_updated(self, api_key_id: str) -> None:
        """Record that a locked API key was written back."""
        self._logger.debug(
            "api_key_updated",
            api_key_id=api_key_id,
            **self._get_context_kwargs(),
        )

    def api_key_not_found(self, lookup: str) -> None:
        """Record that no API key matched a lookup."""
        self._logger.debug(
            "api_key_not_found",
            lookup=lookup,
            **self._get_context_kwargs(),
        )

    def api_key_list_retrieved(self, owner_id: str, count: int) -> None:
        """Record that API keys were listed for an owner."""
        self._logger.debug(
            "api_key_list_retrieved",
            owner_id=owner_id,
            count=count,
            **self._get_context_kwargs(),
        )

    def duplicate_api_key_name(self, name: str, owner_id: str) -> None:
        """Record that a duplicate active API key name was detected."""
        self._logger.warning(
            "duplicate_api_key_name",
            name=name,
            owner_id=owner_id,
            **self._get_context_kwargs(),
        )

    def corrupt_record(self, api_key_id: str, error: str) -> None:
        """Record that a stored API key failed validation on read."""
        self._logger.error(
            "api_key_record_corrupt",
            api_key_id=api_key_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def store_error(self, operation: str, error: str) -> None:
        """Record that the store failed during an operation."""
        self._logger.error(
            "api_key_store_error",
            operation=operation,
            error=error,
            **self._get_context_kwargs(),
        )

"""Protocol for API key validation observability.

Defines the interface for domain probes that capture request-time key
validation events. Secrets never reach the probe; keys are identified by
their ID or, before lookup, by the tail of their hash.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class APIKeyValidatorProbe(Protocol):
    """Domain probe for API key validation."""

    def api_key_accepted(
        self,
        api_key_id: str,
        requests_today: int,
        daily_limit: int,
    ) -> None:
        """Record that a request was accepted and counted."""
        ...

    def api_key_rejected(
        self,
        reason: str,
        api_key_id: str | None = None,
        key_suffix: str | None = None,
    ) -> None:
        """Record that a presented key was rejected."""
        ...

    def rate_limit_exceeded(
        self,
        api_key_id: str,
        window: str,
        limit: int,
    ) -> None:
        """Record that a key reached its daily or monthly ceiling."""
        ...

    def store_unavailable(self, attempt: int, max_attempts: int, error: str) -> None:
        """Record that the key store failed during validation."""
        ...

    def with_context(self, context: ObservationContext) -> APIKeyValidatorProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAPIKeyValidatorProbe:
    """Default implementation of APIKeyValidatorProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultAPIKeyValidatorProbe:
        """Create a new probe with observation context bound."""
        return DefaultAPIKeyValidatorProbe(logger=self._logger, context=context)

    def api_key_accepted(
        self,
        api_key_id: str,
        requests_today: int,
        daily_limit: int,
    ) -> None:
        """Record that a request was accepted and counted."""
        self._logger.debug(
            "api_key_accepted",
            api_key_id=api_key_id,
            requests_today=requests_today,
            daily_limit=daily_limit,
            **self._get_context_kwargs(),
        )

    def api_key_rejected(
        self,
        reason: str,
        api_key_id: str | None = None,
        key_suffix: str | None = None,
    ) -> None:
        """Record that a presented key was rejected."""
        self._logger.info(
            "api_key_rejected",
            reason=reason,
            api_key_id=api_key_id,
            key_suffix=key_suffix,
            **self._get_context_kwargs(),
        )

    def rate_limit_exceeded(
        self,
        api_key_id: str,
        window: str,
        limit: int,
    ) -> None:
        """Record that a key reached its daily or monthly ceiling."""
        self._logger.warning(
            "api_key_rate_limit_exceeded",
            api_key_id=api_key_id,
            window=window,
            limit=limit,
            **self._get_context_kwargs(),
        )

    def store_unavailable(self, attempt: int, max_attempts: int, error: str) -> None:
        """Record that the key store failed during validation."""
        self._logger.warning(
            "api_key_store_unavailable",
            attempt=attempt,
            max_attempts=max_attempts,
            error=error,
            **self._get_context_kwargs(),
        )

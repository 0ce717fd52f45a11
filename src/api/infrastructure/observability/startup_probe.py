"""Domain probe for application startup and lifecycle events.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events during application initialization and shutdown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class StartupProbe(Protocol):
    """Domain probe for application startup operations."""

    def application_started(
        self, app_name: str, version: str, store_backend: str
    ) -> None:
        """Record that the application finished starting."""
        ...

    def volatile_key_store_enabled(self) -> None:
        """Record that API keys are kept in process memory only."""
        ...

    def url_scanning_disabled(self) -> None:
        """Record that URL scanning is off because no VirusTotal key is set."""
        ...

    def application_stopped(self) -> None:
        """Record that the application shut down."""
        ...

    def with_context(self, context: ObservationContext) -> StartupProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultStartupProbe:
    """Default implementation of StartupProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultStartupProbe:
        """Create a new probe with observation context bound."""
        return DefaultStartupProbe(logger=self._logger, context=context)

    def application_started(
        self, app_name: str, version: str, store_backend: str
    ) -> None:
        """Record that the application finished starting."""
        self._logger.info(
            "application_started",
            app_name=app_name,
            version=version,
            store_backend=store_backend,
            **self._get_context_kwargs(),
        )

    def volatile_key_store_enabled(self) -> None:
        """Record that API keys are kept in process memory only."""
        self._logger.warning(
            "volatile_key_store_enabled",
            detail="API keys are lost on restart and not shared between workers",
            **self._get_context_kwargs(),
        )

    def url_scanning_disabled(self) -> None:
        """Record that URL scanning is off because no VirusTotal key is set."""
        self._logger.warning(
            "url_scanning_disabled",
            **self._get_context_kwargs(),
        )

    def application_stopped(self) -> None:
        """Record that the application shut down."""
        self._logger.info(
            "application_stopped",
            **self._get_context_kwargs(),
        )

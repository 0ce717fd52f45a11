"""Protocol for scan application service observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ScanServiceProbe(Protocol):
    """Domain probe for scan service operations."""

    def file_scan_completed(
        self,
        api_key_id: str,
        file_name: str,
        verdict: str,
        threat_severity: str,
    ) -> None:
        """Record that a file scan returned a verdict."""
        ...

    def file_scan_failed(self, api_key_id: str, file_name: str, error: str) -> None:
        """Record that a file scan failed."""
        ...

    def url_scan_completed(
        self,
        api_key_id: str,
        url: str,
        threat_label: str,
        detection_count: int,
    ) -> None:
        """Record that a URL analysis completed."""
        ...

    def url_scan_failed(self, api_key_id: str, url: str, error: str) -> None:
        """Record that a URL scan failed."""
        ...

    def with_context(self, context: ObservationContext) -> ScanServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultScanServiceProbe:
    """Default implementation of ScanServiceProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultScanServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultScanServiceProbe(logger=self._logger, context=context)

    def file_scan_completed(
        self,
        api_key_id: str,
        file_name: str,
        verdict: str,
        threat_severity: str,
    ) -> None:
        """Record that a file scan returned a verdict."""
        self._logger.info(
            "file_scan_completed",
            api_key_id=api_key_id,
            file_name=file_name,
            verdict=verdict,
            threat_severity=threat_severity,
            **self._get_context_kwargs(),
        )

    def file_scan_failed(self, api_key_id: str, file_name: str, error: str) -> None:
        """Record that a file scan failed."""
        self._logger.error(
            "file_scan_failed",
            api_key_id=api_key_id,
            file_name=file_name,
            error=error,
            **self._get_context_kwargs(),
        )

    def url_scan_completed(
        self,
        api_key_id: str,
        url: str,
        threat_label: str,
        detection_count: int,
    ) -> None:
        """Record that a URL analysis completed."""
        self._logger.info(
            "url_scan_completed",
            api_key_id=api_key_id,
            url=url,
            threat_label=threat_label,
            detection_count=detection_count,
            **self._get_context_kwargs(),
        )

    def url_scan_failed(self, api_key_id: str, url: str, error: str) -> None:
        """Record that a URL scan failed."""
        self._logger.error(
            "url_scan_failed",
            api_key_id=api_key_id,
            url=url,
            error=error,
            **self._get_context_kwargs(),
        )

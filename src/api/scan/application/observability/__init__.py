"""Domain-Oriented Observability for the scan application layer."""

from scan.application.observability.scan_service_probe import (
    DefaultScanServiceProbe,
    ScanServiceProbe,
)

__all__ = ["DefaultScanServiceProbe", "ScanServiceProbe"]

"""Application services for the scan bounded context."""

from scan.application.services.scan_service import ScanService

__all__ = ["ScanService"]

"""FastAPI providers for the scan bounded context."""

from typing import Annotated

from fastapi import Depends

from infrastructure.settings import ScannerSettings, get_scanner_settings
from scan.application.observability import DefaultScanServiceProbe, ScanServiceProbe
from scan.application.services import ScanService
from scan.infrastructure import EmberFileScanner, VirusTotalUrlScanner
from scan.ports.scanners import IFileScanner, IUrlScanner


def get_scan_service_probe() -> ScanServiceProbe:
    """Get ScanServiceProbe instance."""
    return DefaultScanServiceProbe()


def get_file_scanner(
    settings: Annotated[ScannerSettings, Depends(get_scanner_settings)],
) -> IFileScanner:
    """Get the file scanner backed by the inference service."""
    return EmberFileScanner(
        base_url=str(settings.ember_api_url),
        timeout_seconds=settings.file_scan_timeout_seconds,
    )


def get_url_scanner(
    settings: Annotated[ScannerSettings, Depends(get_scanner_settings)],
) -> IUrlScanner:
    """Get the URL scanner backed by VirusTotal.

    The scanner is returned even without an API key; it then refuses
    every scan with ScannerNotConfiguredError.
    """
    api_key = settings.virustotal_api_key
    return VirusTotalUrlScanner(
        api_url=str(settings.virustotal_api_url),
        api_key=api_key.get_secret_value() if api_key else None,
        poll_interval=settings.url_poll_interval_seconds,
        max_polls=settings.url_max_polls,
    )


def get_scan_service(
    file_scanner: Annotated[IFileScanner, Depends(get_file_scanner)],
    url_scanner: Annotated[IUrlScanner, Depends(get_url_scanner)],
    probe: Annotated[ScanServiceProbe, Depends(get_scan_service_probe)],
) -> ScanService:
    """Get ScanService instance.

    Args:
        file_scanner: Scanner for file contents
        url_scanner: Scanner for URLs
        probe: Scan service probe for observability

    Returns:
        ScanService instance
    """
    return ScanService(
        file_scanner=file_scanner,
        url_scanner=url_scanner,
        probe=probe,
    )

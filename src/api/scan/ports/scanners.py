"""Scanner protocols (ports) for the scan bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

from scan.domain.value_objects import ScanStats, ThreatLabel


@dataclass(frozen=True)
class FileScanResult:
    """Verdict of the file inference service for one file."""

    file_name: str
    verdict: str
    confidence: float
    malware_probability: float
    threat_severity: str
    file_hash: str | None
    file_size: int | None
    timestamp: str


@dataclass(frozen=True)
class UrlScanResult:
    """Outcome of a completed URL analysis."""

    url: str
    analysis_id: str
    status: str
    stats: ScanStats | None
    threat_label: ThreatLabel
    permalink: str
    scanned_at: datetime


@runtime_checkable
class IFileScanner(Protocol):
    """Scans file contents for malware."""

    async def scan_file(self, file_data_uri: str, file_name: str) -> FileScanResult:
        """Submit a file for scanning and wait for the verdict.

        Args:
            file_data_uri: File contents as a base64 data URI
            file_name: Original name of the file

        Raises:
            ScannerError: If the scanner fails
        """
        ...


@runtime_checkable
class IUrlScanner(Protocol):
    """Scans URLs against reputation engines."""

    async def scan_url(self, url: str) -> UrlScanResult:
        """Submit a URL for analysis and wait for the result.

        Raises:
            ScannerError: If the scanner fails or the analysis does not complete
            ScannerNotConfiguredError: If the scanner has no credentials
        """
        ...

"""Scan application service.

Runs authenticated scan requests through the configured scanners and
records the outcome.
"""

from __future__ import annotations

from scan.application.observability import DefaultScanServiceProbe, ScanServiceProbe
from scan.ports.scanners import FileScanResult, IFileScanner, IUrlScanner, UrlScanResult


class ScanService:
    """Application service for file and URL scans."""

    def __init__(
        self,
        file_scanner: IFileScanner,
        url_scanner: IUrlScanner,
        probe: ScanServiceProbe | None = None,
    ):
        self._file_scanner = file_scanner
        self._url_scanner = url_scanner
        self._probe = probe or DefaultScanServiceProbe()

    async def scan_file(
        self,
        api_key_id: str,
        file_data_uri: str,
        file_name: str,
    ) -> FileScanResult:
        """Scan a file on behalf of an API key.

        Raises:
            ScannerError: If the scanner fails
        """
        try:
            result = await self._file_scanner.scan_file(file_data_uri, file_name)
        except Exception as e:
            self._probe.file_scan_failed(
                api_key_id=api_key_id,
                file_name=file_name,
                error=str(e),
            )
            raise

        self._probe.file_scan_completed(
            api_key_id=api_key_id,
            file_name=result.file_name,
            verdict=result.verdict,
            threat_severity=result.threat_severity,
        )
        return result

    async def scan_url(self, api_key_id: str, url: str) -> UrlScanResult:
        """Scan a URL on behalf of an API key.

        Raises:
            ScannerError: If the scanner fails or the analysis does not complete
            ScannerNotConfiguredError: If URL scanning is not configured
        """
        try:
            result = await self._url_scanner.scan_url(url)
        except Exception as e:
            self._probe.url_scan_failed(
                api_key_id=api_key_id,
                url=url,
                error=str(e),
            )
            raise

        self._probe.url_scan_completed(
            api_key_id=api_key_id,
            url=url,
            threat_label=result.threat_label.value,
            detection_count=result.stats.detection_count if result.stats else 0,
        )
        return result

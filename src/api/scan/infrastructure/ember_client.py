"""HTTP client for the file inference service."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import httpx

from scan.ports.exceptions import ScannerError
from scan.ports.scanners import FileScanResult


class EmberFileScanner:
    """Forwards files to the inference service's ``/scan`` endpoint.

    Implements IFileScanner. A fresh client is opened per scan since file
    scans are long-running and infrequent.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._transport = transport

    async def scan_file(self, file_data_uri: str, file_name: str) -> FileScanResult:
        """Submit a file and map the service's verdict.

        Raises:
            ScannerError: If the service is unreachable, times out or
                answers with a non-2xx status or a non-JSON body
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self._base_url}/scan",
                    json={"file_data": file_data_uri, "file_name": file_name},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            raise ScannerError(
                f"File scan failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ScannerError(f"File scan request failed: {e}") from e
        except ValueError as e:
            raise ScannerError("File scan returned an invalid response") from e

        if not isinstance(payload, dict):
            raise ScannerError("File scan returned an invalid response")

        return _to_result(payload, file_name)


def _to_result(payload: dict[str, Any], file_name: str) -> FileScanResult:
    try:
        return FileScanResult(
            file_name=payload.get("file_name") or file_name,
            verdict=payload.get("verdict") or "Unknown",
            confidence=float(payload.get("confidence") or 0),
            malware_probability=float(payload.get("malware_probability") or 0),
            threat_severity=payload.get("threat_severity") or "Unknown",
            file_hash=payload.get("file_hash"),
            file_size=_optional_int(payload.get("file_size")),
            timestamp=payload.get("timestamp") or datetime.now(UTC).isoformat(),
        )
    except (TypeError, ValueError) as e:
        raise ScannerError("File scan returned an invalid response") from e


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)

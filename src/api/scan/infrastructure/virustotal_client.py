"""HTTP client for the VirusTotal v3 URL analysis API."""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

import httpx

from scan.domain.value_objects import ScanStats, determine_threat_label
from scan.ports.exceptions import ScannerError, ScannerNotConfiguredError
from scan.ports.scanners import UrlScanResult

_GUI_BASE_URL = "https://www.virustotal.com/gui"
_PENDING_STATUSES = frozenset({"queued", "inprogress"})


def url_identifier(url: str) -> str:
    """Return VirusTotal's identifier for a URL (unpadded base64url)."""
    return base64.urlsafe_b64encode(url.encode()).decode().rstrip("=")


class VirusTotalUrlScanner:
    """Submits URLs to VirusTotal and waits for the analysis.

    Implements IUrlScanner. The analysis is polled every ``poll_interval``
    seconds, at most ``max_polls`` times. A failed poll is retried on the
    next attempt unless it was the last one. Once the analysis completes,
    the URL report supplies the aggregated stats; if the report has none,
    the analysis stats are used instead.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        poll_interval: float = 10.0,
        max_polls: int = 6,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._poll_interval = poll_interval
        self._max_polls = max_polls
        self._timeout = timeout_seconds
        self._transport = transport
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        """Whether an API key is available."""
        return bool(self._api_key)

    async def scan_url(self, url: str) -> UrlScanResult:
        """Submit a URL for analysis and wait for the result.

        Raises:
            ScannerNotConfiguredError: If no API key is configured
            ScannerError: If submission fails, the analysis errors, or it
                does not complete within the poll budget
        """
        if not self._api_key:
            raise ScannerNotConfiguredError("VirusTotal API key is not configured")

        async with httpx.AsyncClient(
            base_url=self._api_url,
            headers={"x-apikey": self._api_key},
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            analysis_id = await self._submit(client, url)
            analysis = await self._wait_for_analysis(client, analysis_id)
            return await self._build_result(client, url, analysis_id, analysis)

    async def _submit(self, client: httpx.AsyncClient, url: str) -> str:
        try:
            response = await client.post("/urls", data={"url": url})
            response.raise_for_status()
            analysis_id = response.json()["data"]["id"]
        except httpx.HTTPStatusError as e:
            raise ScannerError(
                f"URL submission failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ScannerError(f"URL submission request failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise ScannerError("URL submission returned no analysis id") from e

        if not isinstance(analysis_id, str) or not analysis_id:
            raise ScannerError("URL submission returned no analysis id")
        return analysis_id

    async def _wait_for_analysis(
        self, client: httpx.AsyncClient, analysis_id: str
    ) -> dict[str, Any]:
        for attempt in range(1, self._max_polls + 1):
            await self._sleep(self._poll_interval)
            is_last = attempt == self._max_polls

            try:
                response = await client.get(f"/analyses/{analysis_id}")
                response.raise_for_status()
                attributes = response.json()["data"]["attributes"]
            except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
                if is_last:
                    raise ScannerError(
                        f"Polling analysis {analysis_id} failed: {e}"
                    ) from e
                continue

            status = attributes.get("status")
            if status == "completed":
                return attributes
            if status not in _PENDING_STATUSES:
                raise ScannerError(
                    f"Analysis {analysis_id} ended with status {status!r}"
                )

        raise ScannerError(
            f"Analysis {analysis_id} did not complete after {self._max_polls} polls"
        )

    async def _build_result(
        self,
        client: httpx.AsyncClient,
        url: str,
        analysis_id: str,
        analysis: dict[str, Any],
    ) -> UrlScanResult:
        url_id = url_identifier(url)
        report_stats = await self._fetch_report_stats(client, url_id)

        if report_stats is not None:
            stats = report_stats
            permalink = f"{_GUI_BASE_URL}/url/{url_id}"
        else:
            stats = _analysis_stats(analysis)
            permalink = f"{_GUI_BASE_URL}/url-analysis/{analysis_id}"

        return UrlScanResult(
            url=url,
            analysis_id=analysis_id,
            status="completed",
            stats=stats,
            threat_label=determine_threat_label(stats),
            permalink=permalink,
            scanned_at=datetime.now(UTC),
        )

    async def _fetch_report_stats(
        self, client: httpx.AsyncClient, url_id: str
    ) -> ScanStats | None:
        """Read the aggregated stats of the URL report, if there are any."""
        try:
            response = await client.get(f"/urls/{url_id}")
            response.raise_for_status()
            raw = response.json()["data"]["attributes"]["last_analysis_stats"]
            return ScanStats.from_mapping(raw) if isinstance(raw, dict) else None
        except (httpx.HTTPError, KeyError, TypeError, ValueError):
            return None


def _analysis_stats(analysis: dict[str, Any]) -> ScanStats | None:
    raw = analysis.get("stats")
    if not isinstance(raw, dict):
        return None
    try:
        return ScanStats.from_mapping(raw)
    except (TypeError, ValueError) as e:
        raise ScannerError("Analysis returned malformed stats") from e

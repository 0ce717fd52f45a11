"""Request and response models for the public scan endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator
from pydantic.alias_generators import to_camel

from iam.application.value_objects import ValidatedAPIKey
from scan.domain.value_objects import ScanStats
from scan.ports.scanners import FileScanResult, UrlScanResult


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON with clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileScanRequest(CamelModel):
    """Request to scan a file supplied as a base64 data URI."""

    file_data_uri: str = Field(
        ...,
        min_length=1,
        description="File contents as a data URI, e.g. data:application/octet-stream;base64,...",
    )
    file_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("file_data_uri")
    @classmethod
    def _require_base64_data_uri(cls, value: str) -> str:
        header, separator, _ = value.partition(",")
        if not separator or not header.startswith("data:") or not header.endswith(
            ";base64"
        ):
            raise ValueError("fileDataUri must be a base64 data URI")
        return value


class UrlScanRequest(CamelModel):
    """Request to scan a URL."""

    url: HttpUrl


class UsageSummary(CamelModel):
    """Daily usage of the calling key after this request."""

    requests_today: int
    daily_limit: int
    remaining_today: int

    @classmethod
    def from_validated_key(cls, api_key: ValidatedAPIKey) -> UsageSummary:
        return cls(
            requests_today=api_key.usage.requests_today,
            daily_limit=api_key.usage.daily_limit,
            remaining_today=api_key.usage.remaining_today,
        )


class FileScanData(CamelModel):
    file_name: str
    verdict: str
    confidence: float
    malware_probability: float
    threat_severity: str
    file_hash: str | None
    file_size: int | None
    timestamp: str

    @classmethod
    def from_result(cls, result: FileScanResult) -> FileScanData:
        return cls(
            file_name=result.file_name,
            verdict=result.verdict,
            confidence=result.confidence,
            malware_probability=result.malware_probability,
            threat_severity=result.threat_severity,
            file_hash=result.file_hash,
            file_size=result.file_size,
            timestamp=result.timestamp,
        )


class ScanStatsData(CamelModel):
    harmless: int
    malicious: int
    suspicious: int
    timeout: int
    undetected: int

    @classmethod
    def from_stats(cls, stats: ScanStats) -> ScanStatsData:
        return cls(
            harmless=stats.harmless,
            malicious=stats.malicious,
            suspicious=stats.suspicious,
            timeout=stats.timeout,
            undetected=stats.undetected,
        )


class UrlScanData(CamelModel):
    url: str
    status: str
    threat_label: str
    stats: ScanStatsData | None
    detection_count: int
    total_engines: int
    permalink: str
    timestamp: datetime

    @classmethod
    def from_result(cls, result: UrlScanResult) -> UrlScanData:
        stats = result.stats
        return cls(
            url=result.url,
            status=result.status,
            threat_label=result.threat_label.value,
            stats=ScanStatsData.from_stats(stats) if stats else None,
            detection_count=stats.detection_count if stats else 0,
            total_engines=stats.total_engines if stats else 0,
            permalink=result.permalink,
            timestamp=result.scanned_at,
        )


class FileScanResponse(CamelModel):
    """Envelope returned by the file scan endpoint."""

    success: bool = True
    data: FileScanData
    usage: UsageSummary


class UrlScanResponse(CamelModel):
    """Envelope returned by the URL scan endpoint."""

    success: bool = True
    data: UrlScanData
    usage: UsageSummary

"""Value objects for the scan domain."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ThreatLabel(StrEnum):
    """Human-readable severity derived from engine statistics."""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    CLEAN = "Clean"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ScanStats:
    """Per-category engine counts of a URL analysis."""

    harmless: int = 0
    malicious: int = 0
    suspicious: int = 0
    timeout: int = 0
    undetected: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ScanStats:
        """Build stats from a scanner payload, treating missing counts as zero."""
        return cls(
            harmless=int(data.get("harmless") or 0),
            malicious=int(data.get("malicious") or 0),
            suspicious=int(data.get("suspicious") or 0),
            timeout=int(data.get("timeout") or 0),
            undetected=int(data.get("undetected") or 0),
        )

    @property
    def detection_count(self) -> int:
        """Engines that flagged the target as malicious or suspicious."""
        return self.malicious + self.suspicious

    @property
    def total_engines(self) -> int:
        """Engines that reported on the target."""
        return (
            self.harmless
            + self.malicious
            + self.suspicious
            + self.timeout
            + self.undetected
        )


def determine_threat_label(stats: ScanStats | None) -> ThreatLabel:
    """Derive a threat label from engine statistics.

    More than five malicious verdicts is critical and any malicious verdict
    is high. Suspicious verdicts alone are medium. A target with no
    malicious or suspicious verdict but some harmless or undetected ones
    is clean. Any other statistics are low, and missing statistics unknown.
    """
    if stats is None:
        return ThreatLabel.UNKNOWN
    if stats.malicious > 5:
        return ThreatLabel.CRITICAL
    if stats.malicious > 0:
        return ThreatLabel.HIGH
    if stats.suspicious > 0:
        return ThreatLabel.MEDIUM
    if stats.harmless > 0 or stats.undetected > 0:
        return ThreatLabel.CLEAN
    return ThreatLabel.LOW

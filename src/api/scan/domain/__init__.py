"""Domain layer for the scan bounded context."""

from scan.domain.value_objects import ScanStats, ThreatLabel, determine_threat_label

__all__ = ["ScanStats", "ThreatLabel", "determine_threat_label"]

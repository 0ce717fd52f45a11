"""Unit tests for threat label derivation."""

import pytest

from scan.domain.value_objects import ScanStats, ThreatLabel, determine_threat_label


@pytest.mark.parametrize(
    ("stats", "expected"),
    [
        (ScanStats(malicious=6), ThreatLabel.CRITICAL),
        (ScanStats(malicious=5, harmless=60), ThreatLabel.HIGH),
        (ScanStats(malicious=1), ThreatLabel.HIGH),
        (ScanStats(suspicious=2, harmless=70), ThreatLabel.MEDIUM),
        (ScanStats(harmless=70, undetected=20), ThreatLabel.CLEAN),
        (ScanStats(undetected=1), ThreatLabel.CLEAN),
        (ScanStats(timeout=3), ThreatLabel.LOW),
        (ScanStats(), ThreatLabel.LOW),
        (None, ThreatLabel.UNKNOWN),
    ],
)
def test_determine_threat_label(stats, expected):
    assert determine_threat_label(stats) is expected


class TestScanStats:
    def test_from_mapping_defaults_missing_counts(self):
        stats = ScanStats.from_mapping({"malicious": 2, "harmless": None})

        assert stats == ScanStats(malicious=2)

    def test_totals(self):
        stats = ScanStats(
            harmless=60, malicious=3, suspicious=2, timeout=1, undetected=4
        )

        assert stats.detection_count == 5
        assert stats.total_engines == 70

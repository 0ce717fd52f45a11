"""Unit tests for the scan service probe."""

from unittest.mock import MagicMock

import structlog

from scan.application.observability import DefaultScanServiceProbe, ScanServiceProbe
from shared_kernel.observability_context import ObservationContext


def test_default_probe_is_usable_as_protocol():
    probe: ScanServiceProbe = DefaultScanServiceProbe()

    probe.url_scan_failed(api_key_id="k-1", url="https://a.example/", error="x")


def test_creates_with_custom_logger():
    custom_logger = structlog.get_logger()
    probe = DefaultScanServiceProbe(logger=custom_logger)

    assert probe._logger is custom_logger


def test_file_scan_completed_logs_at_info():
    mock_logger = MagicMock()
    probe = DefaultScanServiceProbe(logger=mock_logger)

    probe.file_scan_completed(
        api_key_id="k-1", file_name="a.exe", verdict="Benign", threat_severity="Low"
    )

    mock_logger.info.assert_called_once_with(
        "file_scan_completed",
        api_key_id="k-1",
        file_name="a.exe",
        verdict="Benign",
        threat_severity="Low",
    )


def test_failures_log_at_error():
    mock_logger = MagicMock()
    probe = DefaultScanServiceProbe(logger=mock_logger)

    probe.file_scan_failed(api_key_id="k-1", file_name="a.exe", error="down")

    mock_logger.error.assert_called_once()
    assert mock_logger.error.call_args.args == ("file_scan_failed",)


def test_with_context_adds_request_metadata():
    mock_logger = MagicMock()
    probe = DefaultScanServiceProbe(logger=mock_logger).with_context(
        ObservationContext(request_id="req-9", extra={"client": "cli"})
    )

    probe.url_scan_completed(
        api_key_id="k-1",
        url="https://a.example/",
        threat_label="Clean",
        detection_count=0,
    )

    kwargs = mock_logger.info.call_args.kwargs
    assert kwargs["request_id"] == "req-9"
    assert kwargs["client"] == "cli"
    assert kwargs["threat_label"] == "Clean"

"""Unit tests for structlog configuration."""

import structlog

from infrastructure.logging import configure_logging, redact_secrets


def test_redact_secrets_masks_credential_keys():
    event = {"event": "request", "api_key": "ns_live_abc", "token": "eyJ", "path": "/"}

    result = redact_secrets(None, "info", event)

    assert result["api_key"] == "***"
    assert result["token"] == "***"
    assert result["path"] == "/"


def test_redact_secrets_leaves_clean_events_alone():
    event = {"event": "scan", "file_name": "a.exe"}

    assert redact_secrets(None, "info", dict(event)) == event


def test_configure_logging_renders_redacted_json(monkeypatch, capsys):
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    configure_logging(debug=False)

    try:
        structlog.get_logger().info("key_issued", api_key="plaintext")
        output = capsys.readouterr().out
    finally:
        structlog.reset_defaults()

    assert '"event": "key_issued"' in output
    assert '"api_key": "***"' in output
    assert "plaintext" not in output

"""Unit tests for the public scan routes."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient

from iam.domain.aggregates import APIKey
from iam.domain.value_objects import Scope
from iam.infrastructure.in_memory_api_key_repository import InMemoryAPIKeyRepository
from iam.dependencies.api_key import get_api_key_repository
from scan.application.services import ScanService
from scan.dependencies import get_scan_service
from scan.domain.value_objects import ScanStats, ThreatLabel
from scan.ports.exceptions import ScannerError, ScannerNotConfiguredError
from scan.ports.scanners import FileScanResult, UrlScanResult
from scan.presentation import router

DATA_URI = "data:application/octet-stream;base64,TVqQAAMAAAAEAAAA"

FILE_RESULT = FileScanResult(
    file_name="setup.exe",
    verdict="Malicious",
    confidence=0.97,
    malware_probability=0.99,
    threat_severity="Critical",
    file_hash="ab" * 32,
    file_size=4096,
    timestamp="2026-03-10T12:00:00Z",
)


def _admit_all(_active_keys):
    return None


@pytest.fixture
def mock_scan_service() -> AsyncMock:
    return AsyncMock(spec=ScanService)


@pytest.fixture
def repository(api_key: APIKey) -> InMemoryAPIKeyRepository:
    """Store holding the sample key with both scan scopes."""
    repo = InMemoryAPIKeyRepository()
    scoped = replace(api_key, scopes=frozenset({Scope.SCAN_FILE, Scope.SCAN_URL}))
    repo._keys[scoped.id.value] = scoped
    repo._ids_by_hash[scoped.key_hash] = scoped.id.value
    return repo


@pytest.fixture
def test_client(mock_scan_service, repository) -> TestClient:
    app = FastAPI()
    app.dependency_overrides[get_scan_service] = lambda: mock_scan_service
    app.dependency_overrides[get_api_key_repository] = lambda: repository
    app.include_router(router)
    return TestClient(app)


class TestScanFile:
    def test_returns_verdict_and_usage(
        self, test_client, mock_scan_service, api_key, plaintext_key
    ):
        mock_scan_service.scan_file.return_value = FILE_RESULT

        response = test_client.post(
            "/v1/scan/file",
            headers={"X-API-Key": plaintext_key},
            json={"fileDataUri": DATA_URI, "fileName": "setup.exe"},
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert body["data"]["verdict"] == "Malicious"
        assert body["data"]["malwareProbability"] == 0.99
        assert body["data"]["threatSeverity"] == "Critical"
        assert body["usage"] == {
            "requestsToday": 1,
            "dailyLimit": 100,
            "remainingToday": 99,
        }
        assert response.headers["X-RateLimit-Remaining"] == "99"
        mock_scan_service.scan_file.assert_awaited_once_with(
            api_key_id=api_key.id.value,
            file_data_uri=DATA_URI,
            file_name="setup.exe",
        )

    def test_requires_api_key(self, test_client, mock_scan_service):
        response = test_client.post(
            "/v1/scan/file", json={"fileDataUri": DATA_URI, "fileName": "a.exe"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        mock_scan_service.scan_file.assert_not_called()

    @pytest.mark.parametrize(
        "payload",
        [
            {"fileName": "a.exe"},
            {"fileDataUri": "TVqQAAMA", "fileName": "a.exe"},
            {"fileDataUri": "data:text/plain,hello", "fileName": "a.exe"},
            {"fileDataUri": DATA_URI, "fileName": ""},
        ],
    )
    def test_rejects_invalid_payload(self, test_client, plaintext_key, payload):
        response = test_client.post(
            "/v1/scan/file", headers={"X-API-Key": plaintext_key}, json=payload
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT

    def test_scanner_failure_502(self, test_client, mock_scan_service, plaintext_key):
        mock_scan_service.scan_file.side_effect = ScannerError("down")

        response = test_client.post(
            "/v1/scan/file",
            headers={"X-API-Key": plaintext_key},
            json={"fileDataUri": DATA_URI, "fileName": "a.exe"},
        )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["detail"] == "Backend scan failed"


class TestScanUrl:
    def test_returns_label_stats_and_usage(
        self, test_client, mock_scan_service, plaintext_key
    ):
        mock_scan_service.scan_url.return_value = UrlScanResult(
            url="https://phish.example/login",
            analysis_id="u-1",
            status="completed",
            stats=ScanStats(malicious=2, harmless=50, undetected=8),
            threat_label=ThreatLabel.HIGH,
            permalink="https://www.virustotal.com/gui/url/abc",
            scanned_at=datetime(2026, 3, 10, 12, tzinfo=UTC),
        )

        response = test_client.post(
            "/v1/scan/url",
            headers={"Authorization": f"Bearer {plaintext_key}"},
            json={"url": "https://phish.example/login"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["threatLabel"] == "High"
        assert data["detectionCount"] == 2
        assert data["totalEngines"] == 60
        assert data["stats"]["harmless"] == 50
        assert data["permalink"] == "https://www.virustotal.com/gui/url/abc"
        assert response.json()["usage"]["requestsToday"] == 1

    def test_rejects_non_http_url(self, test_client, plaintext_key):
        response = test_client.post(
            "/v1/scan/url",
            headers={"X-API-Key": plaintext_key},
            json={"url": "ftp://files.example/x"},
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT

    def test_not_configured_503(self, test_client, mock_scan_service, plaintext_key):
        mock_scan_service.scan_url.side_effect = ScannerNotConfiguredError("no key")

        response = test_client.post(
            "/v1/scan/url",
            headers={"X-API-Key": plaintext_key},
            json={"url": "https://a.example/"},
        )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_timeout_502(self, test_client, mock_scan_service, plaintext_key):
        mock_scan_service.scan_url.side_effect = ScannerError("did not complete")

        response = test_client.post(
            "/v1/scan/url",
            headers={"X-API-Key": plaintext_key},
            json={"url": "https://a.example/"},
        )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY

    def test_file_only_key_forbidden(
        self, test_client, repository, api_key, plaintext_key, mock_scan_service
    ):
        repository._keys[api_key.id.value].scopes = frozenset({Scope.SCAN_FILE})

        response = test_client.post(
            "/v1/scan/url",
            headers={"X-API-Key": plaintext_key},
            json={"url": "https://a.example/"},
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        mock_scan_service.scan_url.assert_not_called()

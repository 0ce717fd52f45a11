"""HTTP routes for the public, API-key-protected scan endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from iam.application.value_objects import ValidatedAPIKey
from iam.dependencies.api_key_auth import require_api_key
from iam.domain.value_objects import Scope
from scan.application.services import ScanService
from scan.dependencies import get_scan_service
from scan.ports.exceptions import ScannerError, ScannerNotConfiguredError
from scan.presentation.models import (
    FileScanData,
    FileScanRequest,
    FileScanResponse,
    UrlScanData,
    UrlScanRequest,
    UrlScanResponse,
    UsageSummary,
)

router = APIRouter(
    prefix="/v1/scan",
    tags=["scan"],
)


@router.post(
    "/file",
    responses={
        401: {"description": "Missing or invalid API key"},
        403: {"description": "API key lacks the scan:file scope"},
        429: {"description": "Rate limit exceeded"},
        502: {"description": "File scanner failed"},
    },
)
async def scan_file(
    request: FileScanRequest,
    api_key: Annotated[ValidatedAPIKey, Depends(require_api_key(Scope.SCAN_FILE))],
    service: Annotated[ScanService, Depends(get_scan_service)],
) -> FileScanResponse:
    """Scan a file with the malware inference service.

    The request counts against the key's limits even when the scanner
    then fails.
    """
    try:
        result = await service.scan_file(
            api_key_id=api_key.api_key_id.value,
            file_data_uri=request.file_data_uri,
            file_name=request.file_name,
        )
    except ScannerError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Backend scan failed",
        )

    return FileScanResponse(
        data=FileScanData.from_result(result),
        usage=UsageSummary.from_validated_key(api_key),
    )


@router.post(
    "/url",
    responses={
        401: {"description": "Missing or invalid API key"},
        403: {"description": "API key lacks the scan:url scope"},
        429: {"description": "Rate limit exceeded"},
        502: {"description": "URL scanner failed or timed out"},
        503: {"description": "URL scanning is not configured"},
    },
)
async def scan_url(
    request: UrlScanRequest,
    api_key: Annotated[ValidatedAPIKey, Depends(require_api_key(Scope.SCAN_URL))],
    service: Annotated[ScanService, Depends(get_scan_service)],
) -> UrlScanResponse:
    """Scan a URL with VirusTotal and label the threat level."""
    try:
        result = await service.scan_url(
            api_key_id=api_key.api_key_id.value,
            url=str(request.url),
        )
    except ScannerNotConfiguredError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="URL scanning is not configured",
        )
    except ScannerError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )

    return UrlScanResponse(
        data=UrlScanData.from_result(result),
        usage=UsageSummary.from_validated_key(api_key),
    )

"""HTTP routes for API key management."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from iam.application.services.api_key_service import APIKeyService
from iam.application.value_objects import CurrentUser
from iam.dependencies.api_key import get_api_key_service
from iam.dependencies.user import get_current_user
from iam.domain.value_objects import APIKeyId
from iam.ports.exceptions import (
    APIKeyNotFoundError,
    APIKeyOwnershipError,
    APIKeyQuotaExceededError,
    APIKeyStoreUnavailableError,
    DuplicateAPIKeyNameError,
    InvalidAPIKeyNameError,
    InvalidScopeError,
)
from iam.presentation.api_keys.models import (
    APIKeyCreatedResponse,
    APIKeyResponse,
    CreateAPIKeyRequest,
)

router = APIRouter(
    prefix="/api-keys",
    tags=["api-keys"],
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_api_key(
    request: CreateAPIKeyRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[APIKeyService, Depends(get_api_key_service)],
) -> APIKeyCreatedResponse:
    """Create a new API key for the current user.

    The plaintext secret is returned ONLY in this response. Store it securely -
    it cannot be retrieved again.

    Args:
        request: API key creation request
        current_user: Current authenticated key owner
        service: API key service for orchestration

    Returns:
        APIKeyCreatedResponse with key details and plaintext secret

    Raises:
        HTTPException: 400 for a blank name, an invalid scope or a full key cap
        HTTPException: 409 if an active API key already has this name
        HTTPException: 503 if the key store is unavailable
        HTTPException: 500 for unexpected errors
    """
    try:
        api_key, plaintext_secret = await service.create_api_key(
            current_user=current_user,
            name=request.key_name,
            scopes=request.scopes,
            tier=request.tier,
            expires_in_days=request.expires_in_days,
        )
        return APIKeyCreatedResponse.from_domain(api_key, plaintext_secret)

    except (
        InvalidAPIKeyNameError,
        InvalidScopeError,
        APIKeyQuotaExceededError,
    ) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except DuplicateAPIKeyNameError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An API key with this name already exists",
        )
    except APIKeyStoreUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API key store is temporarily unavailable",
        )
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create API key",
        )


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    responses={
        200: {
            "description": "API keys of the current user, newest first",
            "model": list[APIKeyResponse],
        },
        500: {
            "description": "Internal server error",
        },
    },
)
async def list_api_keys(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[APIKeyService, Depends(get_api_key_service)],
) -> list[APIKeyResponse]:
    """List the current user's API keys, revoked ones included.

    The secret is NEVER returned in this response - it is only available
    at creation time.
    """
    try:
        api_keys = await service.list_api_keys(current_user=current_user)
        return [APIKeyResponse.from_domain(key) for key in api_keys]

    except APIKeyStoreUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API key store is temporarily unavailable",
        )
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list API keys",
        )


@router.delete("/{api_key_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_api_key(
    api_key_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[APIKeyService, Depends(get_api_key_service)],
) -> None:
    """Revoke an API key.

    A revoked key can no longer be used but remains visible in the API key
    list with isActive=false for audit purposes. Revoking a key twice is
    not an error.

    Args:
        api_key_id: API Key ID (ULID format)
        current_user: Current authenticated key owner
        service: API key service for orchestration

    Returns:
        None (204 No Content on success)

    Raises:
        HTTPException: 422 if API key ID is invalid
        HTTPException: 404 if API key not found
        HTTPException: 403 if the key belongs to another user
        HTTPException: 503 if the key store is unavailable
        HTTPException: 500 for unexpected errors
    """
    try:
        api_key_id_obj = APIKeyId.from_string(api_key_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="Invalid API key ID format",
        )

    try:
        await service.revoke_api_key(
            api_key_id=api_key_id_obj,
            current_user=current_user,
        )

    except APIKeyNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="API key not found",
        )
    except APIKeyOwnershipError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to revoke this API key",
        )
    except APIKeyStoreUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API key store is temporarily unavailable",
        )
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to revoke API key",
        )

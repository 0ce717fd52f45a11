"""API key authentication for protected endpoints.

``require_api_key(scope)`` builds a FastAPI dependency that extracts the
presented key, validates it (counting the request), checks the scope, and
sets the rate-limit headers on the response.
"""

from typing import Annotated, Awaitable, Callable

from fastapi import Depends, HTTPException, Response, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from iam.application.authorization import has_scope
from iam.application.observability import AuthenticationProbe
from iam.application.security import API_KEY_PREFIX
from iam.application.services import APIKeyValidator
from iam.application.value_objects import ValidatedAPIKey
from iam.dependencies.api_key import get_api_key_validator
from iam.dependencies.authentication import get_authentication_probe
from iam.domain.value_objects import Scope
from iam.ports.exceptions import (
    APIKeyStoreUnavailableError,
    APIKeyValidationError,
    CorruptAPIKeyRecordError,
    RateLimitExceededError,
)

_WWW_AUTHENTICATE = "API-Key"

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)


def extract_presented_key(
    x_api_key: str | None,
    authorization: HTTPAuthorizationCredentials | None,
) -> str | None:
    """Pick the API key a client presented.

    The X-API-Key header wins. A bearer token only counts as an API key
    when it carries the key prefix, so OIDC tokens are never mistaken for one.
    """
    if x_api_key and x_api_key.strip():
        return x_api_key.strip()

    if authorization is not None and authorization.credentials.startswith(
        API_KEY_PREFIX
    ):
        return authorization.credentials.strip()

    return None


def rate_limit_headers(
    limit: int, remaining: int, reset_at_iso: str
) -> dict[str, str]:
    """Build the X-RateLimit-* headers."""
    return {
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": reset_at_iso,
    }


def require_api_key(scope: Scope) -> Callable[..., Awaitable[ValidatedAPIKey]]:
    """Create a dependency that admits requests carrying a key with ``scope``.

    Args:
        scope: The scope the endpoint requires

    Returns:
        FastAPI dependency resolving to the ValidatedAPIKey
    """

    async def authenticate_api_key(
        response: Response,
        validator: Annotated[APIKeyValidator, Depends(get_api_key_validator)],
        auth_probe: Annotated[AuthenticationProbe, Depends(get_authentication_probe)],
        x_api_key: Annotated[str | None, Depends(api_key_header)] = None,
        authorization: Annotated[
            HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
        ] = None,
    ) -> ValidatedAPIKey:
        presented_key = extract_presented_key(x_api_key, authorization)
        if not presented_key:
            auth_probe.api_key_authentication_failed(reason="missing")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="API key required",
                headers={"WWW-Authenticate": _WWW_AUTHENTICATE},
            )

        try:
            validated = await validator.validate_with_retries(presented_key)
        except RateLimitExceededError as e:
            auth_probe.api_key_authentication_failed(reason=e.reason)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=str(e),
                headers={
                    "Retry-After": str(e.retry_after_seconds),
                    **rate_limit_headers(e.limit, 0, e.reset_at.isoformat()),
                },
            ) from e
        except APIKeyValidationError as e:
            auth_probe.api_key_authentication_failed(reason=e.reason)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=str(e),
                headers={"WWW-Authenticate": _WWW_AUTHENTICATE},
            ) from e
        except APIKeyStoreUnavailableError as e:
            auth_probe.api_key_authentication_failed(reason="store-unavailable")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="API key validation is temporarily unavailable",
            ) from e
        except CorruptAPIKeyRecordError as e:
            auth_probe.api_key_authentication_failed(reason="corrupt-record")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to validate API key",
            ) from e

        if not has_scope(validated.scopes, scope):
            auth_probe.api_key_scope_denied(
                api_key_id=validated.api_key_id.value,
                required_scope=scope.value,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"API key lacks required scope: {scope.value}",
            )

        auth_probe.api_key_authentication_succeeded(
            api_key_id=validated.api_key_id.value,
            user_id=validated.owner_id.value,
        )
        response.headers.update(
            rate_limit_headers(
                validated.usage.daily_limit,
                validated.usage.remaining_today,
                validated.resets_at.isoformat(),
            )
        )
        return validated

    return authenticate_api_key

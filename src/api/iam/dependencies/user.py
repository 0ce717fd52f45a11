"""Current user dependency for the key management endpoints."""

from typing import Annotated

from fastapi import Depends, HTTPException, status

from iam.application.observability import AuthenticationProbe
from iam.application.value_objects import CurrentUser
from iam.dependencies.authentication import (
    JWTValidator,
    get_authentication_probe,
    get_jwt_validator,
    oauth2_scheme,
)
from iam.domain.value_objects import UserId
from shared_kernel.auth import InvalidTokenError

_WWW_AUTHENTICATE = "Bearer"


async def get_current_user(
    validator: Annotated[JWTValidator, Depends(get_jwt_validator)],
    auth_probe: Annotated[AuthenticationProbe, Depends(get_authentication_probe)],
    token: Annotated[str | None, Depends(oauth2_scheme)] = None,
) -> CurrentUser:
    """Authenticate the key owner from an OIDC bearer token.

    Args:
        validator: JWT validator for token validation
        auth_probe: Authentication probe for observability
        token: Bearer token from Authorization header

    Returns:
        CurrentUser with the subject as user ID and the admin flag

    Raises:
        HTTPException 401: If the token is missing or invalid
    """
    if token is None:
        auth_probe.authentication_failed(reason="Missing bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": _WWW_AUTHENTICATE},
        )

    try:
        claims = await validator.validate_token(token)
        user_id = UserId.from_string(claims.sub)
    except (InvalidTokenError, ValueError) as e:
        auth_probe.authentication_failed(reason=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": _WWW_AUTHENTICATE},
        ) from e

    auth_probe.user_authenticated(user_id=user_id.value, is_admin=claims.is_admin)
    return CurrentUser(user_id=user_id, is_admin=claims.is_admin)

"""Unit tests for the OIDC JWT validator.

Signs tokens with a throwaway RSA key and serves its JWKS from a patched
fetch, so no identity provider is needed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, create_autospec

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt
from jose.constants import ALGORITHMS

from shared_kernel.auth.jwt_validator import (
    InvalidTokenError,
    JWTValidator,
    TokenClaims,
)
from shared_kernel.auth.observability import JWTValidatorProbe

TEST_ISSUER = "https://auth.example.com/realms/neuroshield"
TEST_AUDIENCE = "neuroshield-api"
TEST_KID = "test-key-id"


@pytest.fixture(scope="module")
def private_key_pem() -> bytes:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="module")
def jwks(private_key_pem: bytes) -> dict[str, Any]:
    """JWKS holding the public half of the test key."""
    public_jwk = jwk.construct(private_key_pem, ALGORITHMS.RS256).public_key()
    key_dict = public_jwk.to_dict()
    key_dict.update({"kid": TEST_KID, "use": "sig", "alg": "RS256"})
    return {"keys": [key_dict]}


@pytest.fixture
def make_token(private_key_pem: bytes):
    def _make(
        sub: str | None = "user-123",
        audience: str = TEST_AUDIENCE,
        exp_delta: timedelta = timedelta(hours=1),
        **extra_claims: Any,
    ) -> str:
        now = datetime.now(tz=timezone.utc)
        claims: dict[str, Any] = {
            "iss": TEST_ISSUER,
            "aud": audience,
            "exp": int((now + exp_delta).timestamp()),
            "iat": int(now.timestamp()),
            **extra_claims,
        }
        if sub is not None:
            claims["sub"] = sub
        return jwt.encode(
            claims,
            private_key_pem.decode(),
            algorithm="RS256",
            headers={"kid": TEST_KID},
        )

    return _make


@pytest.fixture
def mock_probe():
    return create_autospec(JWTValidatorProbe, instance=True)


@pytest.fixture
def validator(mock_probe, jwks) -> JWTValidator:
    validator = JWTValidator(
        issuer_url=TEST_ISSUER,
        audience=TEST_AUDIENCE,
        probe=mock_probe,
    )
    validator._fetch_jwks = AsyncMock(return_value=jwks)
    return validator


class TestValidateToken:
    @pytest.mark.asyncio
    async def test_valid_token_returns_claims(self, validator, mock_probe, make_token):
        claims = await validator.validate_token(make_token())

        assert claims == TokenClaims(sub="user-123", is_admin=False)
        mock_probe.token_validated.assert_called_once_with(
            user_id="user-123", is_admin=False
        )

    @pytest.mark.asyncio
    async def test_admin_role_string(self, validator, make_token):
        claims = await validator.validate_token(make_token(role="admin"))

        assert claims.is_admin is True

    @pytest.mark.asyncio
    async def test_admin_role_list(self, validator, make_token):
        claims = await validator.validate_token(make_token(role=["user", "admin"]))

        assert claims.is_admin is True

    @pytest.mark.asyncio
    async def test_other_role_is_not_admin(self, validator, make_token):
        claims = await validator.validate_token(make_token(role="auditor"))

        assert claims.is_admin is False

    @pytest.mark.asyncio
    async def test_custom_admin_claim(self, mock_probe, jwks, make_token):
        validator = JWTValidator(
            issuer_url=TEST_ISSUER,
            audience=TEST_AUDIENCE,
            probe=mock_probe,
            admin_claim="groups",
            admin_claim_value="neuroshield-admins",
        )
        validator._fetch_jwks = AsyncMock(return_value=jwks)

        claims = await validator.validate_token(
            make_token(groups=["neuroshield-admins"])
        )

        assert claims.is_admin is True

    @pytest.mark.asyncio
    async def test_expired_token(self, validator, make_token):
        with pytest.raises(InvalidTokenError, match="expired"):
            await validator.validate_token(make_token(exp_delta=timedelta(hours=-1)))

    @pytest.mark.asyncio
    async def test_wrong_audience(self, validator, make_token):
        with pytest.raises(InvalidTokenError, match="audience"):
            await validator.validate_token(make_token(audience="someone-else"))

    @pytest.mark.asyncio
    async def test_missing_subject(self, validator, mock_probe, make_token):
        with pytest.raises(InvalidTokenError, match="sub"):
            await validator.validate_token(make_token(sub=None))

        mock_probe.token_validation_failed.assert_called_once()

    @pytest.mark.asyncio
    async def test_malformed_token(self, validator):
        with pytest.raises(InvalidTokenError, match="format"):
            await validator.validate_token("not.a.jwt")


class TestJWKSCache:
    @pytest.mark.asyncio
    async def test_fetches_once_within_ttl(self, validator, mock_probe, jwks):
        async def fetch_and_cache():
            validator._jwks = jwks
            validator._jwks_fetched_at = datetime.now(tz=timezone.utc)
            return jwks

        validator._fetch_jwks = AsyncMock(side_effect=fetch_and_cache)

        await validator._get_jwks()
        await validator._get_jwks()

        validator._fetch_jwks.assert_awaited_once()
        mock_probe.jwks_cache_hit.assert_called_once()

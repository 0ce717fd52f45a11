"""Unit test fixtures shared across bounded contexts."""

from datetime import UTC, datetime

import pytest

from iam.application.security import generate_api_key_secret, hash_api_key_secret
from iam.domain.aggregates import APIKey
from iam.domain.value_objects import Scope, Tier, UserId
from infrastructure.settings import DatabaseSettings


class FrozenClock:
    """Controllable clock returning a fixed UTC instant."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def mock_db_settings() -> DatabaseSettings:
    """Provide test database settings."""
    return DatabaseSettings(
        host="testhost",
        port=5432,
        database="testdb",
        username="testuser",
        password="testpass",
    )


@pytest.fixture
def issued_at() -> datetime:
    """A mid-month instant, well away from any window boundary."""
    return datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def clock(issued_at: datetime) -> FrozenClock:
    return FrozenClock(issued_at)


@pytest.fixture
def owner_id() -> UserId:
    return UserId(value="owner-123")


@pytest.fixture
def plaintext_key() -> str:
    return generate_api_key_secret()


@pytest.fixture
def api_key(owner_id: UserId, plaintext_key: str, issued_at: datetime) -> APIKey:
    """A freshly issued FREE tier key allowed to scan files."""
    return APIKey.create(
        owner_id=owner_id,
        name="CI Scanner",
        key_hash=hash_api_key_secret(plaintext_key),
        scopes=frozenset({Scope.SCAN_FILE}),
        tier=Tier.FREE,
        now=issued_at,
    )

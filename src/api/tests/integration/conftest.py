"""Integration test fixtures for database tests.

These fixtures require a running PostgreSQL instance. Tables are created
from the ORM metadata at the start of the session and dropped at the end.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from pydantic import SecretStr
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_write_engine
from infrastructure.database.models import Base
from infrastructure.settings import DatabaseSettings

# Registers the api_keys table on Base.metadata.
import iam.infrastructure.models  # noqa: F401


@pytest.fixture(scope="session")
def integration_db_settings() -> DatabaseSettings:
    """Database settings for integration tests.

    Override with environment variables:
        NEUROSHIELD_DB_HOST, NEUROSHIELD_DB_PORT, etc.
    """
    return DatabaseSettings(
        host=os.getenv("NEUROSHIELD_DB_HOST", "localhost"),
        port=int(os.getenv("NEUROSHIELD_DB_PORT", "5432")),
        database=os.getenv("NEUROSHIELD_DB_DATABASE", "neuroshield_test"),
        username=os.getenv("NEUROSHIELD_DB_USERNAME", "neuroshield"),
        password=SecretStr(
            os.getenv("NEUROSHIELD_DB_PASSWORD", "neuroshield_dev_password")
        ),
    )


@pytest_asyncio.fixture
async def engine(
    integration_db_settings: DatabaseSettings,
) -> AsyncGenerator[AsyncEngine, None]:
    """Provide an engine with a freshly created schema."""
    engine = create_write_engine(integration_db_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.execute(text("TRUNCATE api_keys"))
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

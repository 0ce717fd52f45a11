"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from iam import presentation as iam_presentation
from infrastructure.database.dependencies import close_database_connections
from infrastructure.logging import configure_logging
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import (
    APIKeyStoreBackend,
    get_api_key_settings,
    get_scanner_settings,
    get_settings,
)
from infrastructure.version import __version__
from scan import presentation as scan_presentation


@asynccontextmanager
async def neuroshield_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - Startup warnings for volatile or missing configuration
    - Database engine lifecycle (created lazily, disposed on shutdown)
    """
    settings = get_settings()
    configure_logging(debug=settings.debug)

    probe = DefaultStartupProbe()
    api_key_settings = get_api_key_settings()
    if api_key_settings.store_backend is APIKeyStoreBackend.MEMORY:
        probe.volatile_key_store_enabled()
    if get_scanner_settings().virustotal_api_key is None:
        probe.url_scanning_disabled()
    probe.application_started(
        app_name=settings.app_name,
        version=__version__,
        store_backend=api_key_settings.store_backend.value,
    )

    yield

    await close_database_connections()
    probe.application_stopped()


app = FastAPI(
    title="NeuroShield API",
    description="API key issuance and API-key-protected malware scanning",
    version=__version__,
    lifespan=neuroshield_lifespan,
)

# API key management (OIDC bearer token)
app.include_router(iam_presentation.router)

# Public scanning (API key)
app.include_router(scan_presentation.router)


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok"}

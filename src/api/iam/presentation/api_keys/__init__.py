"""API key management routes and models."""

from iam.presentation.api_keys.routes import router

__all__ = ["router"]

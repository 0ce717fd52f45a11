"""Presentation layer for the scan bounded context."""

from scan.presentation.routes import router

__all__ = ["router"]

"""Ports (interfaces) for IAM bounded context."""

from iam.ports.exceptions import (
    APIKeyNotFoundError,
    APIKeyStoreUnavailableError,
    APIKeyValidationError,
    DuplicateAPIKeyNameError,
)
from iam.ports.repositories import IAPIKeyRepository

__all__ = [
    "APIKeyNotFoundError",
    "APIKeyStoreUnavailableError",
    "APIKeyValidationError",
    "DuplicateAPIKeyNameError",
    "IAPIKeyRepository",
]

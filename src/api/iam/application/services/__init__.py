"""Application services for IAM bounded context.

Application services orchestrate domain aggregates, repositories, and
other infrastructure to fulfill use cases. They are the "front door" to
the IAM context.
"""

from iam.application.services.api_key_service import APIKeyService
from iam.application.services.api_key_validator import APIKeyValidator

__all__ = [
    "APIKeyService",
    "APIKeyValidator",
]

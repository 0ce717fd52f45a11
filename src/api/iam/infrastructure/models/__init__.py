"""SQLAlchemy ORM models for IAM bounded context.

These models map to database tables and are used by repository implementations.
"""

from iam.infrastructure.models.api_key import ACTIVE_NAME_INDEX, APIKeyModel

__all__ = [
    "ACTIVE_NAME_INDEX",
    "APIKeyModel",
]

"""Domain-Oriented Observability for IAM infrastructure.

Probes for repository operations following Domain-Oriented Observability patterns.
"""

from iam.infrastructure.observability.api_key_repository_probe import (
    APIKeyRepositoryProbe,
    DefaultAPIKeyRepositoryProbe,
)

__all__ = [
    "APIKeyRepositoryProbe",
    "DefaultAPIKeyRepositoryProbe",
]

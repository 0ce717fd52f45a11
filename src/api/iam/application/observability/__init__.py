"""Domain-Oriented Observability for IAM application layer.

Probes for application service operations following Domain-Oriented Observability patterns.
"""

from iam.application.observability.api_key_service_probe import (
    APIKeyServiceProbe,
    DefaultAPIKeyServiceProbe,
)
from iam.application.observability.api_key_validator_probe import (
    APIKeyValidatorProbe,
    DefaultAPIKeyValidatorProbe,
)
from iam.application.observability.authentication_probe import (
    AuthenticationProbe,
    DefaultAuthenticationProbe,
)

__all__ = [
    "APIKeyServiceProbe",
    "DefaultAPIKeyServiceProbe",
    "APIKeyValidatorProbe",
    "DefaultAPIKeyValidatorProbe",
    "AuthenticationProbe",
    "DefaultAuthenticationProbe",
]

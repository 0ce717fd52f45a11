"""Security utilities for API key management.

Provides secure secret generation, hashing, and format checking for API keys.
Uses cryptographically secure random generation and SHA-256 for hashing.
"""

import hashlib
import re
import secrets

from iam.domain.aggregates.api_key import KEY_SUFFIX_LENGTH

API_KEY_PREFIX = "ns_live_"

_API_KEY_PATTERN = re.compile(r"^ns_live_[a-f0-9]{64}$")


def generate_api_key_secret() -> str:
    """Generate an API key with the ns_live_ prefix.

    Generates 32 bytes of cryptographically secure random data and encodes
    it as 64 lowercase hex characters.

    The ns_live_ prefix aids in:
    - Secret scanning (easily identifiable in logs/code)
    - Routing (bearer tokens with the prefix are treated as API keys)

    Returns:
        An API key string (e.g., ns_live_3f9a...)
    """
    return f"{API_KEY_PREFIX}{secrets.token_hex(32)}"


def hash_api_key_secret(secret: str) -> str:
    """Hash an API key secret using SHA-256.

    The digest is unsalted and deterministic so it can serve as the lookup
    key for the stored record. The secret itself is never stored.

    Args:
        secret: The plaintext API key secret to hash

    Returns:
        The 64-character lowercase hex digest
    """
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def is_valid_api_key_format(candidate: str) -> bool:
    """Check whether a presented string has the shape of an issued key.

    Args:
        candidate: The string presented by a client

    Returns:
        True if the string fully matches the key format, False otherwise
    """
    return _API_KEY_PATTERN.fullmatch(candidate) is not None


def display_suffix(key_hash: str) -> str:
    """Return the tail of a key hash that is safe to show to the owner."""
    return key_hash[-KEY_SUFFIX_LENGTH:]

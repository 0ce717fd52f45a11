"""Issuance rules for API keys."""

from __future__ import annotations

from collections.abc import Sequence

from iam.domain.aggregates import APIKey
from iam.domain.exceptions import APIKeyQuotaExceededError, DuplicateAPIKeyNameError

MAX_ACTIVE_KEYS_PER_OWNER = 10


def check_issuance(
    active_keys: Sequence[APIKey],
    name: str,
    is_admin: bool,
    max_active_keys: int = MAX_ACTIVE_KEYS_PER_OWNER,
) -> None:
    """Check that an owner may be issued another key with the given name.

    Admins are exempt from the active-key cap but not from name uniqueness.

    Args:
        active_keys: The owner's currently active keys
        name: The requested key name
        is_admin: Whether the owner is an administrator
        max_active_keys: Cap on simultaneously active keys for non-admins

    Raises:
        APIKeyQuotaExceededError: If a non-admin owner is at the cap
        DuplicateAPIKeyNameError: If an active key already uses the name
    """
    if not is_admin and len(active_keys) >= max_active_keys:
        raise APIKeyQuotaExceededError(
            f"Maximum number of active API keys reached ({max_active_keys})"
        )

    wanted = normalize_key_name(name)
    if any(normalize_key_name(key.name) == wanted for key in active_keys):
        raise DuplicateAPIKeyNameError(
            f'An API key with the name "{name}" already exists'
        )


def normalize_key_name(name: str) -> str:
    """Return the form used to compare key names."""
    return name.strip().lower()

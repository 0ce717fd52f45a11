"""Scope checks for API key callers."""

from collections.abc import Collection

from iam.domain.value_objects import Scope


def has_scope(granted: Collection[Scope], required: Scope) -> bool:
    """Check whether a set of granted scopes satisfies a required scope.

    The admin scope satisfies every requirement.
    """
    return required in granted or Scope.ADMIN in granted

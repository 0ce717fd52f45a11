"""Exceptions raised by IAM domain rules."""


class APIKeyQuotaExceededError(Exception):
    """Raised when a non-admin owner already holds the maximum of active keys.

    Admins are exempt from this cap.
    """

    pass


class DuplicateAPIKeyNameError(Exception):
    """Raised when attempting to create an API key with a name that already exists.

    This exception indicates that the business rule of unique names among
    an owner's active keys (compared case-insensitively) has been violated.
    Admins are subject to this rule too.
    """

    pass

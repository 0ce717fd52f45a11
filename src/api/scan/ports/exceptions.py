"""Exceptions for the scan bounded context."""


class ScannerError(Exception):
    """Raised when a remote scanner fails or returns an unusable answer."""

    pass


class ScannerNotConfiguredError(Exception):
    """Raised when a scanner is used without its required credentials."""

    pass

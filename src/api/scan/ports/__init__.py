"""Ports (interfaces) for the scan bounded context."""

from scan.ports.exceptions import ScannerError, ScannerNotConfiguredError
from scan.ports.scanners import (
    FileScanResult,
    IFileScanner,
    IUrlScanner,
    UrlScanResult,
)

__all__ = [
    "FileScanResult",
    "IFileScanner",
    "IUrlScanner",
    "ScannerError",
    "ScannerNotConfiguredError",
    "UrlScanResult",
]

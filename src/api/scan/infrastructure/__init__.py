"""Remote scanner clients for the scan bounded context."""

from scan.infrastructure.ember_client import EmberFileScanner
from scan.infrastructure.virustotal_client import VirusTotalUrlScanner

__all__ = ["EmberFileScanner", "VirusTotalUrlScanner"]

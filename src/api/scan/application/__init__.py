"""Application layer for the scan bounded context."""

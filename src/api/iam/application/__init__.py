"""Application layer for the IAM bounded context."""

"""Infrastructure layer for the IAM bounded context."""

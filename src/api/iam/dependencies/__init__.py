"""FastAPI dependency providers for the IAM bounded context."""

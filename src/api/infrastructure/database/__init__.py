"""Database infrastructure - async SQLAlchemy engine and sessions."""

"""SQLAlchemy ORM model for the api_keys table.

Stores API key metadata and usage counters in PostgreSQL. The key_hash is
the only secret-derived data stored - the plaintext secret is never persisted.
"""

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class APIKeyModel(Base, TimestampMixin):
    """ORM model for api_keys table.

    Notes:
    - owner_id is VARCHAR(255) to hold external identity provider subjects
    - key_hash is the SHA-256 hex digest and unique for authentication lookup
    - Names are unique per owner among active keys only, compared
      case-insensitively (partial unique index below)
    - Rows are never deleted; revocation flips is_active
    """

    __tablename__ = "api_keys"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    key_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    scopes: Mapped[list[str]] = mapped_column(ARRAY(String(32)), nullable=False)
    tier: Mapped[str] = mapped_column(String(16), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    total_requests: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    requests_today: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    daily_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    monthly_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    last_reset_date: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<APIKeyModel(id={self.id}, owner_id={self.owner_id}, "
            f"name={self.name}, is_active={self.is_active})>"
        )


ACTIVE_NAME_INDEX = "uq_api_keys_owner_active_name"

Index(
    ACTIVE_NAME_INDEX,
    APIKeyModel.owner_id,
    func.lower(APIKeyModel.name),
    unique=True,
    postgresql_where=APIKeyModel.is_active,
)

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, DeclarativeBase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------------------------------------------
# Base Configuration (required for Alembic/SQLAlchemy 2.0)
# -----------------------------------------------------------
class Base(DeclarativeBase):
    """Base class which provides the primary key
    and common columns like created_at."""
    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # Python-side default keeps the value loaded after flush (no lazy refresh on AsyncSession)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


class TimestampMixin:
    """Adds an updated_at column refreshed on every ORM update."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

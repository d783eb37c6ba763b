from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from peopleflow.core.models import Base, TimestampMixin


class Session(TimestampMixin, Base):
    """
    Login session issued by the authentication provider.

    - token is the opaque credential sent by the client (cookie or Bearer).
    - active_tenant_id is the only mutable piece owned by this service; it
      selects which tenant's role assignments apply to permission checks.
    """

    __tablename__ = "sessions"

    token: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )

    active_tenant_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("tenants.id", ondelete="SET NULL"), nullable=True
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)

    ip_address: Mapped[Optional[str]] = mapped_column(String(64))
    user_agent: Mapped[Optional[str]] = mapped_column(String(512))

    user: Mapped["User"] = relationship(back_populates="sessions")
    active_tenant: Mapped[Optional["Tenant"]] = relationship()

    def __repr__(self) -> str:
        return (
            f"<Session id={self.id} "
            f"user_id={self.user_id} "
            f"active_tenant_id={self.active_tenant_id}>"
        )

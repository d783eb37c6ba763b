import uuid
from typing import Optional

from sqlalchemy import ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.orm import relationship, mapped_column, Mapped

from peopleflow.core.models import Base


class UserRole(Base):
    """
    Assignment of a Role to a User inside one Tenant.

    tenant_id is NULL only for global assignments (the super-admin role).
    Permission aggregation filters on this column, never on the user alone.
    """
    __tablename__ = "user_roles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    role_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"), index=True, nullable=False
    )
    tenant_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), index=True
    )

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", "tenant_id", name="_user_tenant_role_uc"),
        Index(
            "uq_user_roles_global", "user_id", "role_id", unique=True,
            sqlite_where=text("tenant_id IS NULL"),
            postgresql_where=text("tenant_id IS NULL"),
        ),
        Index("ix_user_roles_user_tenant", "user_id", "tenant_id"),
    )

    user: Mapped["User"] = relationship(back_populates="user_roles")
    role: Mapped["Role"] = relationship(back_populates="user_roles")
    tenant: Mapped[Optional["Tenant"]] = relationship(back_populates="user_roles")

    def __repr__(self):
        return f"<UserRole(User ID='{self.user_id}', Role ID='{self.role_id}', Tenant ID='{self.tenant_id}')>"

import uuid
from typing import List, Optional

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.orm import relationship, mapped_column, Mapped

from peopleflow.core.models import Base, TimestampMixin


class Role(TimestampMixin, Base):
    """Named bundle of Permissions owned by one tenant, or global when tenant_id is NULL."""
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(50), index=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255))
    tenant_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), index=True
    )

    __table_args__ = (
        UniqueConstraint("name", "tenant_id", name="_role_name_tenant_uc"),
        # NULLs never collide in a unique constraint, so global names need their own index
        Index(
            "uq_roles_global_name", "name", unique=True,
            sqlite_where=text("tenant_id IS NULL"),
            postgresql_where=text("tenant_id IS NULL"),
        ),
    )

    tenant: Mapped[Optional["Tenant"]] = relationship(back_populates="roles")
    permissions: Mapped[List["RolePermission"]] = relationship(back_populates="role", cascade="all, delete-orphan")
    user_roles: Mapped[List["UserRole"]] = relationship(back_populates="role")

    def __repr__(self):
        return f"<Role(name='{self.name}', tenant_id='{self.tenant_id}')>"

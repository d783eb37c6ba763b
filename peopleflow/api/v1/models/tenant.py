from typing import List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from peopleflow.core.models import Base, TimestampMixin


class Tenant(TimestampMixin, Base):
    """Isolated organization. Root of role and assignment scoping."""
    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)

    roles: Mapped[List["Role"]] = relationship(back_populates="tenant")
    user_roles: Mapped[List["UserRole"]] = relationship(back_populates="tenant")

    def __repr__(self):
        return f"<Tenant(id='{self.id}', slug='{self.slug}')>"

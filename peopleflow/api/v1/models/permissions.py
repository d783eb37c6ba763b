from typing import List, Optional

from sqlalchemy import String
from sqlalchemy.orm import relationship, mapped_column, Mapped

from peopleflow.core.models import Base
from peopleflow.core.permissions import is_modular_permission


class Permission(Base):
    """Catalog entry in RESOURCE:ACTION format (e.g. 'usuarios:crear', 'roles:gestionar')."""
    __tablename__ = "permissions"

    name: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    resource: Mapped[str] = mapped_column(String(50), index=True, nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255))

    roles: Mapped[List["RolePermission"]] = relationship(back_populates="permission", cascade="all, delete-orphan")

    @property
    def is_modular(self) -> bool:
        return is_modular_permission(self.name)

    def __repr__(self):
        return f"<Permission(name='{self.name}')>"

from typing import List

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from peopleflow.core.models import Base, TimestampMixin


class User(TimestampMixin, Base):
    """Identity principal. Owned by the authentication provider."""
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user_roles: Mapped[List["UserRole"]] = relationship(back_populates="user")
    sessions: Mapped[List["Session"]] = relationship(back_populates="user")

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"

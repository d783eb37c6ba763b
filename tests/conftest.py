"""Shared fixtures: an in-memory SQLite database built from the ORM metadata."""
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from peopleflow.api.v1.models import (
    Permission,
    Role,
    RolePermission,
    Session,
    Tenant,
    User,
    UserRole,
)
from peopleflow.api.v1.schemas import slugify
from peopleflow.core.models import Base
from peopleflow.core.permissions import HIDDEN_ADMIN_ROLE_NAME, SUPER_ADMIN_PERMISSION_NAME


class DataFactory:
    """Inserts committed rows for tests."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._permissions = {}

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def tenant(self, name: str = "Acme") -> Tenant:
        return await self._save(Tenant(name=name, slug=slugify(name)))

    async def user(self, email: str = "ana@peopleflow.io", name: str = "Ana") -> User:
        return await self._save(User(email=email, name=name))

    async def permission(self, name: str) -> Permission:
        if name not in self._permissions:
            resource, _, action = name.partition(":")
            self._permissions[name] = await self._save(Permission(name=name, resource=resource, action=action))
        return self._permissions[name]

    async def role(self, name: str, tenant: Optional[Tenant] = None, permissions: Iterable[str] = ()) -> Role:
        role = Role(name=name, tenant_id=tenant.id if tenant else None)
        self.db.add(role)
        await self.db.flush()
        for permission_name in permissions:
            permission = await self.permission(permission_name)
            self.db.add(RolePermission(role_id=role.id, permission_id=permission.id))
        await self.db.commit()
        return role

    async def assign(self, user: User, role: Role, tenant: Optional[Tenant] = None) -> UserRole:
        return await self._save(UserRole(user_id=user.id, role_id=role.id, tenant_id=tenant.id if tenant else None))

    async def session(
            self,
            user: User,
            token: str = "token-ana",
            tenant: Optional[Tenant] = None,
            expires_in: timedelta = timedelta(hours=1),
    ) -> Session:
        return await self._save(Session(
            token=token,
            user_id=user.id,
            active_tenant_id=tenant.id if tenant else None,
            expires_at=datetime.now(timezone.utc) + expires_in,
        ))

    async def super_admin(self, email: str = "root@peopleflow.io") -> User:
        user = await self.user(email=email, name="Root")
        role = await self.role(HIDDEN_ADMIN_ROLE_NAME, permissions=[SUPER_ADMIN_PERMISSION_NAME])
        await self.assign(user, role)
        return user


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def factory(db):
    return DataFactory(db)

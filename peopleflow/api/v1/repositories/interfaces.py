"""
Repository protocols consumed by the permission core.

The use cases depend on these shapes only, so they can be exercised with
in-memory or mocked implementations.
"""
from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.schemas import Permission, TenantWithRoles, User


@runtime_checkable
class IUserRoleRepository(Protocol):
    """Read side of the User ⟷ Role ⟷ Tenant assignment relation."""

    async def is_super_admin(self, db: AsyncSession, user_id: UUID) -> bool:
        """True when a global assignment grants the super-admin permission."""
        ...

    async def user_belongs_to_tenant(self, db: AsyncSession, user_id: UUID, tenant_id: UUID) -> bool:
        """True iff at least one assignment exists for the (user, tenant) pair."""
        ...

    async def find_user_by_id(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        ...

    async def get_user_permissions(self, db: AsyncSession, user_id: UUID, tenant_id: Optional[UUID]) -> List[str]:
        """
        Flattened permission names for the user scoped to exactly one tenant.

        Args:
            tenant_id: Active tenant. None is only meaningful for the global
                super-admin path and yields an empty list for everyone else.
        """
        ...

    async def list_user_tenants(self, db: AsyncSession, user_id: UUID) -> List[TenantWithRoles]:
        ...


@runtime_checkable
class IPermissionRepository(Protocol):
    """Read-only access to the permission catalog."""

    async def find_by_id(self, db: AsyncSession, permission_id: UUID) -> Optional[Permission]:
        ...

    async def find_by_name(self, db: AsyncSession, name: str) -> Optional[Permission]:
        ...

    async def find_by_role_id(self, db: AsyncSession, role_id: UUID) -> List[Permission]:
        ...

    async def find_all(self, db: AsyncSession) -> List[Permission]:
        ...

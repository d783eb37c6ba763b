from functools import lru_cache
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.models import (
    Permission as PermissionModel,
    Role as RoleModel,
    RolePermission,
    Tenant as TenantModel,
    User as UserModel,
    UserRole as UserRoleModel,
)
from peopleflow.api.v1.schemas import Tenant, TenantWithRoles, User, UserWithTenantRoles
from peopleflow.core.permissions import SUPER_ADMIN_PERMISSION_NAME
from peopleflow.core.repositories import BaseRepository


class UserRoleRepository(BaseRepository):
    """
    Repository for UserRole assignments.

    Every read that produces permissions is scoped by tenant: either the
    active tenant or the global (tenant-less) super-admin assignments.
    """

    def __init__(self):
        super().__init__(UserRoleModel)

    async def is_super_admin(self, db: AsyncSession, user_id: UUID) -> bool:
        permission_id = await db.scalar(
            select(PermissionModel.id).where(PermissionModel.name == SUPER_ADMIN_PERMISSION_NAME)
        )
        if permission_id is None:
            return False

        query = (
            select(self.model.id)
            .join(RolePermission, RolePermission.role_id == self.model.role_id)
            .where(
                self.model.user_id == user_id,
                self.model.tenant_id.is_(None),
                RolePermission.permission_id == permission_id,
            )
            .limit(1)
        )
        return await db.scalar(query) is not None

    async def user_belongs_to_tenant(self, db: AsyncSession, user_id: UUID, tenant_id: UUID) -> bool:
        query = (
            select(self.model.id)
            .where(self.model.user_id == user_id, self.model.tenant_id == tenant_id)
            .limit(1)
        )
        return await db.scalar(query) is not None

    async def find_user_by_id(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        orm_user = await db.get(UserModel, user_id)
        return User.model_validate(orm_user) if orm_user else None

    async def get_user_permissions(self, db: AsyncSession, user_id: UUID, tenant_id: Optional[UUID]) -> List[str]:
        scope = self.model.tenant_id.is_(None)
        if tenant_id is not None:
            scope = or_(scope, self.model.tenant_id == tenant_id)

        query = (
            select(self.model.tenant_id, PermissionModel.name)
            .join(RolePermission, RolePermission.role_id == self.model.role_id)
            .join(PermissionModel, PermissionModel.id == RolePermission.permission_id)
            .where(self.model.user_id == user_id, scope)
        )
        rows = (await db.execute(query)).all()

        global_permissions = {name for row_tenant, name in rows if row_tenant is None}
        if SUPER_ADMIN_PERMISSION_NAME in global_permissions:
            return sorted(global_permissions)

        if tenant_id is None:
            return []

        # super-admin is only ever granted through a global assignment
        tenant_permissions = {name for row_tenant, name in rows if row_tenant == tenant_id}
        tenant_permissions.discard(SUPER_ADMIN_PERMISSION_NAME)
        return sorted(tenant_permissions)

    async def list_user_tenants(self, db: AsyncSession, user_id: UUID) -> List[TenantWithRoles]:
        query = (
            select(TenantModel, RoleModel.name)
            .join(self.model, self.model.tenant_id == TenantModel.id)
            .join(RoleModel, RoleModel.id == self.model.role_id)
            .where(self.model.user_id == user_id)
            .order_by(TenantModel.name, RoleModel.name)
        )
        grouped: Dict[UUID, TenantWithRoles] = {}
        for orm_tenant, role_name in (await db.execute(query)).all():
            if orm_tenant.id not in grouped:
                grouped[orm_tenant.id] = TenantWithRoles(**Tenant.model_validate(orm_tenant).model_dump())
            grouped[orm_tenant.id].roles.append(role_name)
        return list(grouped.values())

    async def list_users_in_tenant(self, db: AsyncSession, tenant_id: UUID) -> List[UserWithTenantRoles]:
        query = (
            select(UserModel, RoleModel.name)
            .join(self.model, self.model.user_id == UserModel.id)
            .join(RoleModel, RoleModel.id == self.model.role_id)
            .where(self.model.tenant_id == tenant_id)
            .order_by(UserModel.name, RoleModel.name)
        )
        grouped: Dict[UUID, UserWithTenantRoles] = {}
        for orm_user, role_name in (await db.execute(query)).all():
            if orm_user.id not in grouped:
                grouped[orm_user.id] = UserWithTenantRoles(**User.model_validate(orm_user).model_dump())
            grouped[orm_user.id].roles.append(role_name)
        return list(grouped.values())

    async def count_users_with_role(self, db: AsyncSession, role_id: UUID) -> int:
        query = select(func.count(func.distinct(self.model.user_id))).where(self.model.role_id == role_id)
        return await db.scalar(query) or 0

    async def add_user_roles(self, db: AsyncSession, user_id: UUID, tenant_id: Optional[UUID], role_ids: Sequence[UUID]) -> None:
        for role_id in role_ids:
            db.add(self.model(user_id=user_id, role_id=role_id, tenant_id=tenant_id))
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ValueError("El usuario ya tiene asignado uno de los roles en este tenant.") from e

    async def replace_user_roles_in_tenant(self, db: AsyncSession, user_id: UUID, tenant_id: UUID, role_ids: Sequence[UUID]) -> None:
        """Swap the user's assignments in one tenant inside a single transaction."""
        await db.execute(
            delete(self.model).where(self.model.user_id == user_id, self.model.tenant_id == tenant_id)
        )
        for role_id in dict.fromkeys(role_ids):
            db.add(self.model(user_id=user_id, role_id=role_id, tenant_id=tenant_id))
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ValueError("No se pudieron actualizar los roles del usuario.") from e

    async def delete_user_roles_in_tenant(self, db: AsyncSession, user_id: UUID, tenant_id: UUID) -> int:
        result = await db.execute(
            delete(self.model).where(self.model.user_id == user_id, self.model.tenant_id == tenant_id)
        )
        await db.commit()
        return result.rowcount or 0


@lru_cache()
def get_user_role_repository() -> UserRoleRepository:
    return UserRoleRepository()

from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from peopleflow.api.v1.models import Permission as PermissionModel, Role as RoleModel, RolePermission, UserRole
from peopleflow.api.v1.schemas import Permission, Role, RoleFilter, RoleWithPermissions, RoleWithStats
from peopleflow.core.helpers import apply_filters_and_sorting, paginate
from peopleflow.core.permissions import HIDDEN_ADMIN_ROLE_NAME
from peopleflow.core.repositories import BaseRepository


class RoleRepository(BaseRepository):
    """
    Repository for Role entity.

    Tenant listings include the tenant's own roles plus global roles, and never
    the hidden administrator role.
    """
    def __init__(self):
        super().__init__(RoleModel)

    def _visible_in_tenant(self, tenant_id: UUID):
        return (
            or_(self.model.tenant_id == tenant_id, self.model.tenant_id.is_(None)),
            self.model.name != HIDDEN_ADMIN_ROLE_NAME,
        )

    async def find_by_name_and_tenant(self, db: AsyncSession, name: str, tenant_id: Optional[UUID]) -> Optional[Role]:
        tenant_clause = self.model.tenant_id.is_(None) if tenant_id is None else self.model.tenant_id == tenant_id
        result = await db.execute(select(self.model).where(self.model.name == name, tenant_clause))
        orm_role = result.scalars().first()
        return Role.model_validate(orm_role) if orm_role else None

    async def find_ids_granting(self, db: AsyncSession, role_ids: Sequence[UUID], permission_name: str) -> List[UUID]:
        """Subset of `role_ids` whose permission set includes `permission_name`."""
        if not role_ids:
            return []
        query = (
            select(RolePermission.role_id)
            .join(PermissionModel, PermissionModel.id == RolePermission.permission_id)
            .where(RolePermission.role_id.in_(list(role_ids)), PermissionModel.name == permission_name)
            .distinct()
        )
        return list((await db.execute(query)).scalars().all())

    async def find_by_ids(self, db: AsyncSession, role_ids: Sequence[UUID]) -> List[Role]:
        if not role_ids:
            return []
        result = await db.execute(select(self.model).where(self.model.id.in_(list(role_ids))))
        return [Role.model_validate(r) for r in result.scalars().all()]

    async def find_by_tenant(self, db: AsyncSession, tenant_id: UUID) -> List[RoleWithStats]:
        """Roles visible in the tenant with permission counts and the tenant's user counts."""
        permissions_count = (
            select(func.count(RolePermission.id))
            .where(RolePermission.role_id == self.model.id)
            .correlate(self.model)
            .scalar_subquery()
        )
        users_count = (
            select(func.count(func.distinct(UserRole.user_id)))
            .where(UserRole.role_id == self.model.id, UserRole.tenant_id == tenant_id)
            .correlate(self.model)
            .scalar_subquery()
        )
        query = (
            select(self.model, permissions_count, users_count)
            .where(*self._visible_in_tenant(tenant_id))
            .order_by(self.model.name)
        )
        return [
            RoleWithStats(**Role.model_validate(role).model_dump(), permissions_count=p_count, users_count=u_count)
            for role, p_count, u_count in (await db.execute(query)).all()
        ]

    async def get_with_permissions(self, db: AsyncSession, role_id: UUID) -> Optional[RoleWithPermissions]:
        result = await db.execute(
            select(self.model)
            .options(selectinload(self.model.permissions).selectinload(RolePermission.permission))
            .where(self.model.id == role_id)
        )
        orm_role = result.scalars().first()
        if not orm_role:
            return None
        permissions = sorted(
            (Permission.model_validate(link.permission) for link in orm_role.permissions),
            key=lambda p: p.name,
        )
        return RoleWithPermissions(**Role.model_validate(orm_role).model_dump(), permissions=permissions)

    async def get_filtered_items(self, db: AsyncSession, filters: RoleFilter, tenant_id: UUID) -> Dict[str, Any]:
        base_query = select(self.model).where(*self._visible_in_tenant(tenant_id))
        filter_dict, sort_fields, logic_operator = self.build_filters_from_params(filters).values()
        query, _ = apply_filters_and_sorting(
            base_query, self.model, filters=filter_dict, sort=sort_fields or ["name+"], logic_operator=logic_operator
        )
        return await paginate(db, query, page=filters.page, page_size=filters.page_size)

    async def replace_permissions(self, db: AsyncSession, role_id: UUID, permission_ids: Sequence[UUID]) -> None:
        await db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        for permission_id in dict.fromkeys(permission_ids):
            db.add(RolePermission(role_id=role_id, permission_id=permission_id))
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ValueError("No se pudieron asignar los permisos al rol.") from e

    async def delete_with_permissions(self, db: AsyncSession, role_id: UUID) -> bool:
        """Remove the role's permission links first, then the role itself."""
        await db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        result = await db.execute(delete(self.model).where(self.model.id == role_id))
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ValueError("Eliminando Role: el rol está en uso.") from e
        return (result.rowcount or 0) > 0


@lru_cache()
def get_role_repository() -> RoleRepository:
    """Dependency injector for RoleRepository."""
    return RoleRepository()

from functools import lru_cache
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.models import Permission as PermissionModel, RolePermission
from peopleflow.api.v1.schemas import Permission, PermissionFilter
from peopleflow.core.repositories import BaseRepository


class PermissionRepository(BaseRepository):
    """Catalog of permissions. Rows are created by migrations, never through the API."""

    def __init__(self):
        super().__init__(PermissionModel)

    async def find_by_id(self, db: AsyncSession, permission_id: UUID) -> Optional[Permission]:
        return await self.get_by_id(db, permission_id, Permission)

    async def find_by_name(self, db: AsyncSession, name: str) -> Optional[Permission]:
        result = await db.execute(select(self.model).where(self.model.name == name))
        orm_permission = result.scalars().first()
        return Permission.model_validate(orm_permission) if orm_permission else None

    async def find_by_ids(self, db: AsyncSession, permission_ids: Sequence[UUID]) -> List[Permission]:
        if not permission_ids:
            return []
        result = await db.execute(select(self.model).where(self.model.id.in_(list(permission_ids))))
        return [Permission.model_validate(p) for p in result.scalars().all()]

    async def find_by_role_id(self, db: AsyncSession, role_id: UUID) -> List[Permission]:
        query = (
            select(self.model)
            .join(RolePermission, RolePermission.permission_id == self.model.id)
            .where(RolePermission.role_id == role_id)
            .order_by(self.model.resource, self.model.action)
        )
        result = await db.execute(query)
        return [Permission.model_validate(p) for p in result.scalars().all()]

    async def find_all(self, db: AsyncSession) -> List[Permission]:
        result = await db.execute(select(self.model).order_by(self.model.resource, self.model.action))
        return [Permission.model_validate(p) for p in result.scalars().all()]

    def build_filters_from_params(self, filters: PermissionFilter):
        params = super().build_filters_from_params(filters)
        params["sort_fields"] = filters.sort or ["resource+", "action+"]
        return params


@lru_cache()
def get_permission_repository() -> PermissionRepository:
    return PermissionRepository()

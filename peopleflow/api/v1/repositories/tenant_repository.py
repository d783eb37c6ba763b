from functools import lru_cache
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.models import Tenant as TenantModel, UserRole
from peopleflow.api.v1.schemas import Tenant
from peopleflow.core.repositories import BaseRepository


class TenantRepository(BaseRepository):
    def __init__(self):
        super().__init__(TenantModel)

    async def find_by_id(self, db: AsyncSession, tenant_id: UUID) -> Optional[Tenant]:
        return await self.get_by_id(db, tenant_id, Tenant)

    async def find_by_slug(self, db: AsyncSession, slug: str) -> Optional[Tenant]:
        result = await db.execute(select(self.model).where(self.model.slug == slug))
        orm_tenant = result.scalars().first()
        return Tenant.model_validate(orm_tenant) if orm_tenant else None

    async def find_by_name_or_slug(self, db: AsyncSession, name: str, slug: str) -> Optional[Tenant]:
        result = await db.execute(
            select(self.model).where(or_(self.model.name == name, self.model.slug == slug)).limit(1)
        )
        orm_tenant = result.scalars().first()
        return Tenant.model_validate(orm_tenant) if orm_tenant else None

    async def find_by_user_id(self, db: AsyncSession, user_id: UUID) -> List[Tenant]:
        """Tenants where the user holds at least one assignment. Global assignments name no tenant."""
        query = (
            select(self.model)
            .where(self.model.id.in_(select(UserRole.tenant_id).where(UserRole.user_id == user_id)))
            .order_by(self.model.name)
        )
        result = await db.execute(query)
        return [Tenant.model_validate(t) for t in result.scalars().all()]


@lru_cache()
def get_tenant_repository() -> TenantRepository:
    return TenantRepository()

from functools import lru_cache
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from peopleflow.api.v1.models import Session as SessionModel
from peopleflow.core.repositories import BaseRepository


class SessionRepository(BaseRepository):
    """Session rows are issued by the authentication provider; only active_tenant_id is written here."""

    def __init__(self):
        super().__init__(SessionModel)

    async def find_by_token(self, db: AsyncSession, token: str) -> Optional[SessionModel]:
        result = await db.execute(
            select(self.model).options(joinedload(self.model.user)).where(self.model.token == token)
        )
        return result.scalars().first()

    async def update_active_tenant(self, db: AsyncSession, token: str, tenant_id: Optional[UUID]) -> bool:
        result = await db.execute(
            update(self.model)
            .where(self.model.token == token)
            .values(active_tenant_id=tenant_id)
            .execution_options(synchronize_session="fetch")
        )
        await db.commit()
        return (result.rowcount or 0) > 0


@lru_cache()
def get_session_repository() -> SessionRepository:
    return SessionRepository()

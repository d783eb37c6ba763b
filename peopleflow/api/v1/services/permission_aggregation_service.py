import logging
from functools import lru_cache
from typing import FrozenSet, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.repositories import IUserRoleRepository, get_user_role_repository
from peopleflow.api.v1.schemas import UserPermissionsResult

logger = logging.getLogger(__name__)

NO_ROLE_ASSIGNED = "No tienes un rol asignado"
PERMISSIONS_UNAVAILABLE = "Error al obtener los permisos del usuario"


class PermissionAggregationService:
    """
    The only sanctioned read path for a user's working permission set.

    Every entry point takes the tenant explicitly; there is no "all roles of
    this user" variant.
    """

    def __init__(self, user_role_repository: IUserRoleRepository):
        self.user_role_repository = user_role_repository

    async def get_user_permissions(self, db: AsyncSession, user_id: UUID, tenant_id: Optional[UUID]) -> UserPermissionsResult:
        try:
            permissions = await self.user_role_repository.get_user_permissions(db, user_id, tenant_id)
        except SQLAlchemyError:
            logger.exception("Failed to aggregate permissions for user %s in tenant %s", user_id, tenant_id)
            return UserPermissionsResult(success=False, error=PERMISSIONS_UNAVAILABLE)

        if not permissions:
            return UserPermissionsResult(success=False, error=NO_ROLE_ASSIGNED)
        return UserPermissionsResult(success=True, permissions=permissions)

    async def get_effective_permissions(self, db: AsyncSession, user_id: UUID, tenant_id: Optional[UUID]) -> FrozenSet[str]:
        """Permission set for guards. Store failures yield an empty set."""
        result = await self.get_user_permissions(db, user_id, tenant_id)
        return frozenset(result.permissions)

    async def is_super_admin(self, db: AsyncSession, user_id: UUID) -> bool:
        try:
            return await self.user_role_repository.is_super_admin(db, user_id)
        except SQLAlchemyError:
            logger.exception("Failed to resolve super-admin status for user %s", user_id)
            return False


@lru_cache()
def get_permission_aggregation_service() -> PermissionAggregationService:
    return PermissionAggregationService(user_role_repository=get_user_role_repository())

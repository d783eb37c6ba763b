import logging
from functools import lru_cache
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.repositories import (
    RoleRepository,
    TenantRepository,
    UserRoleRepository,
    get_role_repository,
    get_tenant_repository,
    get_user_role_repository,
)
from peopleflow.api.v1.schemas import ErrorCode, OperationResult
from peopleflow.core.permissions import HIDDEN_ADMIN_ROLE_NAME, SUPER_ADMIN_PERMISSION_NAME

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "Usuario no encontrado"
TENANT_NOT_FOUND = "Tenant no encontrado"
USER_NOT_IN_TENANT = "El usuario no pertenece a este tenant"
USER_ALREADY_IN_TENANT = "El usuario ya pertenece a este tenant"
ROLE_REQUIRED = "Debes asignar al menos un rol"
ROLES_OUTSIDE_TENANT = "Uno o más roles no pertenecen al tenant"
HIDDEN_ROLE_NOT_ASSIGNABLE = "El rol de administrador no puede ser asignado"
GLOBAL_ROLE_NOT_ASSIGNABLE = "Los roles globales no pueden asignarse dentro de un tenant"
SUPER_ADMIN_NOT_ASSIGNABLE = "Los privilegios de super administrador no pueden asignarse desde un tenant"
CANNOT_REMOVE_SELF = "No puedes eliminarte a ti mismo del tenant"
USERS_UNAVAILABLE = "Error al procesar la solicitud de usuarios"


class UserRoleService:
    """Manages which roles a user holds inside one tenant."""

    def __init__(
            self,
            user_role_repository: UserRoleRepository,
            role_repository: RoleRepository,
            tenant_repository: TenantRepository,
    ):
        self.user_role_repository = user_role_repository
        self.role_repository = role_repository
        self.tenant_repository = tenant_repository

    async def _validate_roles(self, db: AsyncSession, tenant_id: UUID, role_ids: Sequence[UUID]) -> Optional[OperationResult]:
        if not role_ids:
            return OperationResult.fail(ROLE_REQUIRED)

        roles = await self.role_repository.find_by_ids(db, list(dict.fromkeys(role_ids)))
        if len(roles) != len(set(role_ids)):
            return OperationResult.fail(ROLES_OUTSIDE_TENANT)
        if any(role.name == HIDDEN_ADMIN_ROLE_NAME for role in roles):
            return OperationResult.fail(HIDDEN_ROLE_NOT_ASSIGNABLE, ErrorCode.FORBIDDEN)
        if any(role.tenant_id is None for role in roles):
            return OperationResult.fail(GLOBAL_ROLE_NOT_ASSIGNABLE, ErrorCode.FORBIDDEN)
        if any(role.tenant_id != tenant_id for role in roles):
            return OperationResult.fail(ROLES_OUTSIDE_TENANT)
        if await self.role_repository.find_ids_granting(db, [role.id for role in roles], SUPER_ADMIN_PERMISSION_NAME):
            return OperationResult.fail(SUPER_ADMIN_NOT_ASSIGNABLE, ErrorCode.FORBIDDEN)
        return None

    async def list_tenant_users(self, db: AsyncSession, tenant_id: UUID) -> OperationResult:
        try:
            return OperationResult.ok(await self.user_role_repository.list_users_in_tenant(db, tenant_id))
        except SQLAlchemyError:
            logger.exception("Failed to list users of tenant %s", tenant_id)
            return OperationResult.fail(USERS_UNAVAILABLE, ErrorCode.UNAVAILABLE)

    async def update_user_roles(self, db: AsyncSession, tenant_id: UUID, user_id: UUID, role_ids: Sequence[UUID]) -> OperationResult:
        """Replace the user's roles in `tenant_id`. Assignments in other tenants are untouched."""
        try:
            if await self.user_role_repository.find_user_by_id(db, user_id) is None:
                return OperationResult.fail(USER_NOT_FOUND, ErrorCode.NOT_FOUND)
            if not await self.user_role_repository.user_belongs_to_tenant(db, user_id, tenant_id):
                return OperationResult.fail(USER_NOT_IN_TENANT, ErrorCode.NOT_FOUND)

            failure = await self._validate_roles(db, tenant_id, role_ids)
            if failure:
                return failure

            await self.user_role_repository.replace_user_roles_in_tenant(db, user_id, tenant_id, role_ids)
        except ValueError as e:
            return OperationResult.fail(str(e), ErrorCode.CONFLICT)
        except SQLAlchemyError:
            logger.exception("Failed to update roles of user %s in tenant %s", user_id, tenant_id)
            return OperationResult.fail(USERS_UNAVAILABLE, ErrorCode.UNAVAILABLE)

        logger.info("Updated roles of user %s in tenant %s", user_id, tenant_id)
        return OperationResult.ok()

    async def assign_user_to_tenant(self, db: AsyncSession, tenant_id: UUID, user_id: UUID, role_ids: Sequence[UUID]) -> OperationResult:
        try:
            if await self.user_role_repository.find_user_by_id(db, user_id) is None:
                return OperationResult.fail(USER_NOT_FOUND, ErrorCode.NOT_FOUND)
            if await self.tenant_repository.find_by_id(db, tenant_id) is None:
                return OperationResult.fail(TENANT_NOT_FOUND, ErrorCode.NOT_FOUND)
            if await self.user_role_repository.user_belongs_to_tenant(db, user_id, tenant_id):
                return OperationResult.fail(USER_ALREADY_IN_TENANT, ErrorCode.CONFLICT)

            failure = await self._validate_roles(db, tenant_id, role_ids)
            if failure:
                return failure

            await self.user_role_repository.add_user_roles(db, user_id, tenant_id, list(dict.fromkeys(role_ids)))
        except ValueError as e:
            return OperationResult.fail(str(e), ErrorCode.CONFLICT)
        except SQLAlchemyError:
            logger.exception("Failed to add user %s to tenant %s", user_id, tenant_id)
            return OperationResult.fail(USERS_UNAVAILABLE, ErrorCode.UNAVAILABLE)

        logger.info("Added user %s to tenant %s", user_id, tenant_id)
        return OperationResult.ok()

    async def remove_user_from_tenant(self, db: AsyncSession, tenant_id: UUID, user_id: UUID, requesting_user_id: UUID) -> OperationResult:
        """Drop every assignment of the user in `tenant_id`. The account itself is kept."""
        if user_id == requesting_user_id:
            return OperationResult.fail(CANNOT_REMOVE_SELF, ErrorCode.FORBIDDEN)

        try:
            if not await self.user_role_repository.user_belongs_to_tenant(db, user_id, tenant_id):
                return OperationResult.fail(USER_NOT_IN_TENANT, ErrorCode.NOT_FOUND)
            deleted = await self.user_role_repository.delete_user_roles_in_tenant(db, user_id, tenant_id)
        except SQLAlchemyError:
            logger.exception("Failed to remove user %s from tenant %s", user_id, tenant_id)
            return OperationResult.fail(USERS_UNAVAILABLE, ErrorCode.UNAVAILABLE)

        logger.info("Removed user %s from tenant %s (%d assignments)", user_id, tenant_id, deleted)
        return OperationResult.ok({"deleted_count": deleted})


@lru_cache()
def get_user_role_service() -> UserRoleService:
    return UserRoleService(
        user_role_repository=get_user_role_repository(),
        role_repository=get_role_repository(),
        tenant_repository=get_tenant_repository(),
    )

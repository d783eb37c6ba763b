import logging
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.models import Role as RoleModel
from peopleflow.api.v1.repositories import (
    PermissionRepository,
    RoleRepository,
    UserRoleRepository,
    get_permission_repository,
    get_role_repository,
    get_user_role_repository,
)
from peopleflow.api.v1.schemas import ErrorCode, OperationResult, Role, RoleCreate, RoleUpdate
from peopleflow.core.permissions import HIDDEN_ADMIN_ROLE_NAME, SUPER_ADMIN_PERMISSION_NAME

logger = logging.getLogger(__name__)

ROLE_NOT_FOUND = "Rol no encontrado"
ROLE_NAME_TAKEN = "Ya existe un rol con ese nombre en este tenant"
ROLE_NAME_RESERVED = "Este nombre de rol está reservado"
HIDDEN_ROLE_LOCKED = "El rol de administrador no puede ser modificado"
GLOBAL_ROLE_LOCKED = "Los roles globales no pueden ser modificados desde un tenant"
ROLE_HAS_USERS = "No se puede eliminar un rol con usuarios asignados"
UNKNOWN_PERMISSIONS = "Uno o más permisos no existen"
ROLES_UNAVAILABLE = "Error al procesar la solicitud de roles"


def _is_reserved(name: Optional[str]) -> bool:
    return name is not None and name.strip().lower() == HIDDEN_ADMIN_ROLE_NAME


class RoleService:
    """Role administration inside the active tenant. Authorization is enforced by the route guards."""

    def __init__(
            self,
            role_repository: RoleRepository,
            permission_repository: PermissionRepository,
            user_role_repository: UserRoleRepository,
    ):
        self.role_repository = role_repository
        self.permission_repository = permission_repository
        self.user_role_repository = user_role_repository

    async def _owned_role(self, db: AsyncSession, tenant_id: UUID, role_id: UUID) -> Tuple[Optional[RoleModel], Optional[OperationResult]]:
        """Load a role the tenant may change, or the failure explaining why it may not."""
        role = await self.role_repository.get_by_id(db, role_id)
        if role is None or (role.tenant_id is not None and role.tenant_id != tenant_id):
            return None, OperationResult.fail(ROLE_NOT_FOUND, ErrorCode.NOT_FOUND)
        if role.name == HIDDEN_ADMIN_ROLE_NAME:
            return None, OperationResult.fail(HIDDEN_ROLE_LOCKED, ErrorCode.FORBIDDEN)
        if role.tenant_id is None:
            return None, OperationResult.fail(GLOBAL_ROLE_LOCKED, ErrorCode.FORBIDDEN)
        return role, None

    async def list_roles(self, db: AsyncSession, tenant_id: UUID) -> OperationResult:
        try:
            return OperationResult.ok(await self.role_repository.find_by_tenant(db, tenant_id))
        except SQLAlchemyError:
            logger.exception("Failed to list roles of tenant %s", tenant_id)
            return OperationResult.fail(ROLES_UNAVAILABLE, ErrorCode.UNAVAILABLE)

    async def get_role(self, db: AsyncSession, tenant_id: UUID, role_id: UUID) -> OperationResult:
        try:
            role = await self.role_repository.get_with_permissions(db, role_id)
        except SQLAlchemyError:
            logger.exception("Failed to load role %s", role_id)
            return OperationResult.fail(ROLES_UNAVAILABLE, ErrorCode.UNAVAILABLE)

        hidden = role is not None and role.name == HIDDEN_ADMIN_ROLE_NAME
        foreign = role is not None and role.tenant_id not in (None, tenant_id)
        if role is None or hidden or foreign:
            return OperationResult.fail(ROLE_NOT_FOUND, ErrorCode.NOT_FOUND)
        return OperationResult.ok(role)

    async def create_role(self, db: AsyncSession, tenant_id: UUID, data: RoleCreate) -> OperationResult:
        if _is_reserved(data.name):
            return OperationResult.fail(ROLE_NAME_RESERVED, ErrorCode.FORBIDDEN)

        values = {"name": data.name, "description": data.description, "tenant_id": tenant_id}
        try:
            if await self.role_repository.find_by_name_and_tenant(db, data.name, tenant_id) is not None:
                return OperationResult.fail(ROLE_NAME_TAKEN, ErrorCode.CONFLICT)
            role = await self.role_repository.create(db, values, Role)
        except ValueError:
            # (name, tenant_id) unique constraint
            return OperationResult.fail(ROLE_NAME_TAKEN, ErrorCode.CONFLICT)
        except SQLAlchemyError:
            logger.exception("Failed to create role %s in tenant %s", data.name, tenant_id)
            return OperationResult.fail(ROLES_UNAVAILABLE, ErrorCode.UNAVAILABLE)

        logger.info("Created role %s in tenant %s", role.id, tenant_id)
        return OperationResult.ok(role)

    async def update_role(self, db: AsyncSession, tenant_id: UUID, role_id: UUID, data: RoleUpdate) -> OperationResult:
        if _is_reserved(data.name):
            return OperationResult.fail(ROLE_NAME_RESERVED, ErrorCode.FORBIDDEN)

        try:
            _, failure = await self._owned_role(db, tenant_id, role_id)
            if failure:
                return failure
            role = await self.role_repository.update(db, data.model_dump(exclude_unset=True), role_id, Role)
        except ValueError:
            return OperationResult.fail(ROLE_NAME_TAKEN, ErrorCode.CONFLICT)
        except SQLAlchemyError:
            logger.exception("Failed to update role %s", role_id)
            return OperationResult.fail(ROLES_UNAVAILABLE, ErrorCode.UNAVAILABLE)

        return OperationResult.ok(role)

    async def delete_role(self, db: AsyncSession, tenant_id: UUID, role_id: UUID) -> OperationResult:
        try:
            _, failure = await self._owned_role(db, tenant_id, role_id)
            if failure:
                return failure
            if await self.user_role_repository.count_users_with_role(db, role_id) > 0:
                return OperationResult.fail(ROLE_HAS_USERS, ErrorCode.CONFLICT)
            await self.role_repository.delete_with_permissions(db, role_id)
        except ValueError:
            return OperationResult.fail(ROLE_HAS_USERS, ErrorCode.CONFLICT)
        except SQLAlchemyError:
            logger.exception("Failed to delete role %s", role_id)
            return OperationResult.fail(ROLES_UNAVAILABLE, ErrorCode.UNAVAILABLE)

        logger.info("Deleted role %s from tenant %s", role_id, tenant_id)
        return OperationResult.ok()

    async def assign_permissions(self, db: AsyncSession, tenant_id: UUID, role_id: UUID, permission_ids: Sequence[UUID]) -> OperationResult:
        """Replace the role's permission set. The super-admin permission is never assignable here."""
        try:
            _, failure = await self._owned_role(db, tenant_id, role_id)
            if failure:
                return failure

            requested = list(dict.fromkeys(permission_ids))
            permissions = await self.permission_repository.find_by_ids(db, requested)
            if len(permissions) != len(requested):
                return OperationResult.fail(UNKNOWN_PERMISSIONS)

            allowed: List[UUID] = [p.id for p in permissions if p.name != SUPER_ADMIN_PERMISSION_NAME]
            await self.role_repository.replace_permissions(db, role_id, allowed)
            role = await self.role_repository.get_with_permissions(db, role_id)
        except ValueError as e:
            return OperationResult.fail(str(e), ErrorCode.CONFLICT)
        except SQLAlchemyError:
            logger.exception("Failed to assign permissions to role %s", role_id)
            return OperationResult.fail(ROLES_UNAVAILABLE, ErrorCode.UNAVAILABLE)

        return OperationResult.ok(role)


@lru_cache()
def get_role_service() -> RoleService:
    return RoleService(
        role_repository=get_role_repository(),
        permission_repository=get_permission_repository(),
        user_role_repository=get_user_role_repository(),
    )

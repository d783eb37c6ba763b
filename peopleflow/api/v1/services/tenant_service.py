"""
Tenant resolution and session binding.

A session is bound to at most one active tenant. The binding is written only
after the access check has completed, so a session never points at a tenant
its user cannot access, not even transiently.

Binding states, as reported by ``resolve_session_tenant``:

    NO_TENANT                 no active tenant (fresh login, or explicit switch to None)
    SINGLE_TENANT_AUTO_BOUND  exactly one accessible tenant, bound without prompting
    MULTI_TENANT_UNSELECTED   several accessible tenants, the client must prompt
    BOUND                     active tenant set and still accessible
    DENIED                    no accessible tenant at all
"""
import logging
import re
from functools import lru_cache
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.repositories import (
    IUserRoleRepository,
    SessionRepository,
    TenantRepository,
    get_session_repository,
    get_tenant_repository,
    get_user_role_repository,
)
from peopleflow.api.v1.schemas import (
    AuthContext,
    CurrentTenantResult,
    ErrorCode,
    OperationResult,
    SwitchTenantResult,
    Tenant,
    TenantBindingState,
    TenantCreate,
    TenantResolution,
    slugify,
)
from peopleflow.api.v1.schemas.tenants import SLUG_PATTERN
from peopleflow.core.permissions import (
    DEFAULT_SUPER_ADMIN_ROUTE,
    FALLBACK_ROUTE,
    TENANT_SELECTION_ROUTE,
    get_default_route,
)

logger = logging.getLogger(__name__)

TENANT_ACCESS_DENIED = "No tienes acceso a este tenant"
TENANT_NOT_FOUND = "Tenant no encontrado"
NO_ACCESSIBLE_TENANT = "No tienes acceso a ningún tenant"
NO_ACTIVE_TENANT = "No hay un tenant activo en la sesión"
SESSION_NOT_FOUND = "Sesión no encontrada"
TENANT_ALREADY_EXISTS = "Ya existe un tenant con ese nombre o slug"
INVALID_SLUG = "El slug solo puede contener letras minúsculas, números y guiones"
SWITCH_FAILED = "Error al cambiar de tenant"
TENANTS_UNAVAILABLE = "Error al obtener los tenants"
CREATE_FAILED = "Error al crear el tenant"


class TenantService:

    def __init__(
            self,
            user_role_repository: IUserRoleRepository,
            tenant_repository: TenantRepository,
            session_repository: SessionRepository,
    ):
        self.user_role_repository = user_role_repository
        self.tenant_repository = tenant_repository
        self.session_repository = session_repository

    async def list_accessible_tenants(self, db: AsyncSession, user_id: UUID) -> OperationResult:
        try:
            tenants = await self.user_role_repository.list_user_tenants(db, user_id)
        except SQLAlchemyError:
            logger.exception("Failed to list tenants for user %s", user_id)
            return OperationResult.fail(TENANTS_UNAVAILABLE, ErrorCode.UNAVAILABLE)
        return OperationResult.ok(tenants)

    async def can_access_tenant(self, db: AsyncSession, user_id: UUID, tenant_id: UUID) -> bool:
        try:
            return await self.user_role_repository.user_belongs_to_tenant(db, user_id, tenant_id)
        except SQLAlchemyError:
            logger.exception("Failed to check access of user %s to tenant %s", user_id, tenant_id)
            return False

    async def switch_active_tenant(
            self,
            db: AsyncSession,
            session_token: str,
            user_id: UUID,
            tenant_id: Optional[UUID],
    ) -> SwitchTenantResult:
        """
        Bind the session to `tenant_id`, or unbind it when None.

        Super-admins may bind any existing tenant; everyone else needs at least
        one role assignment in the target. A rejected switch leaves the session
        untouched.
        """
        try:
            if tenant_id is not None:
                is_super_admin = await self.user_role_repository.is_super_admin(db, user_id)
                if not is_super_admin and not await self.user_role_repository.user_belongs_to_tenant(db, user_id, tenant_id):
                    logger.warning("Rejected tenant switch: user %s has no role in tenant %s", user_id, tenant_id)
                    return SwitchTenantResult(success=False, error=TENANT_ACCESS_DENIED)
                if is_super_admin and await self.tenant_repository.find_by_id(db, tenant_id) is None:
                    return SwitchTenantResult(success=False, error=TENANT_NOT_FOUND)

            if not await self.session_repository.update_active_tenant(db, session_token, tenant_id):
                return SwitchTenantResult(success=False, error=SESSION_NOT_FOUND)

            permissions = await self.user_role_repository.get_user_permissions(db, user_id, tenant_id)
        except SQLAlchemyError:
            logger.exception("Tenant switch failed for user %s", user_id)
            return SwitchTenantResult(success=False, error=SWITCH_FAILED)

        logger.info("User %s switched active tenant to %s", user_id, tenant_id)
        return SwitchTenantResult(
            success=True,
            active_tenant_id=tenant_id,
            redirect_to=get_default_route(permissions),
        )

    async def resolve_session_tenant(self, db: AsyncSession, auth: AuthContext) -> TenantResolution:
        """Run the binding state machine for the session in `auth`, auto-binding a sole tenant."""
        user_id = auth.user.id
        token = auth.session.token
        active_tenant_id = auth.session.active_tenant_id

        try:
            if await self.user_role_repository.is_super_admin(db, user_id):
                return TenantResolution(
                    state=TenantBindingState.BOUND if active_tenant_id else TenantBindingState.NO_TENANT,
                    active_tenant_id=active_tenant_id,
                    is_super_admin=True,
                    redirect_to=DEFAULT_SUPER_ADMIN_ROUTE,
                )

            tenants = await self.user_role_repository.list_user_tenants(db, user_id)

            if active_tenant_id is not None:
                if any(t.id == active_tenant_id for t in tenants):
                    permissions = await self.user_role_repository.get_user_permissions(db, user_id, active_tenant_id)
                    return TenantResolution(
                        state=TenantBindingState.BOUND,
                        active_tenant_id=active_tenant_id,
                        tenants=tenants,
                        redirect_to=get_default_route(permissions),
                    )
                logger.warning("Clearing stale tenant %s from session of user %s", active_tenant_id, user_id)
                await self.session_repository.update_active_tenant(db, token, None)

            if not tenants:
                logger.warning("User %s has no accessible tenant", user_id)
                return TenantResolution(
                    state=TenantBindingState.DENIED,
                    redirect_to=FALLBACK_ROUTE,
                    error=NO_ACCESSIBLE_TENANT,
                )

            if len(tenants) == 1:
                tenant_id = tenants[0].id
                await self.session_repository.update_active_tenant(db, token, tenant_id)
                permissions = await self.user_role_repository.get_user_permissions(db, user_id, tenant_id)
                logger.info("Auto-bound user %s to sole tenant %s", user_id, tenant_id)
                return TenantResolution(
                    state=TenantBindingState.SINGLE_TENANT_AUTO_BOUND,
                    active_tenant_id=tenant_id,
                    tenants=tenants,
                    redirect_to=get_default_route(permissions),
                )

            return TenantResolution(
                state=TenantBindingState.MULTI_TENANT_UNSELECTED,
                tenants=tenants,
                redirect_to=TENANT_SELECTION_ROUTE,
            )
        except SQLAlchemyError:
            logger.exception("Tenant resolution failed for user %s", user_id)
            return TenantResolution(
                state=TenantBindingState.NO_TENANT,
                redirect_to=FALLBACK_ROUTE,
                error=TENANTS_UNAVAILABLE,
            )

    async def get_current_tenant(self, db: AsyncSession, session_token: str) -> CurrentTenantResult:
        try:
            session = await self.session_repository.find_by_token(db, session_token)
            if session is None:
                return CurrentTenantResult(success=False, error=SESSION_NOT_FOUND)
            if session.active_tenant_id is None:
                return CurrentTenantResult(success=False, error=NO_ACTIVE_TENANT)

            tenant = await self.tenant_repository.find_by_id(db, session.active_tenant_id)
        except SQLAlchemyError:
            logger.exception("Failed to load the current tenant")
            return CurrentTenantResult(success=False, error=TENANTS_UNAVAILABLE)

        if tenant is None:
            return CurrentTenantResult(success=False, error=TENANT_NOT_FOUND)
        return CurrentTenantResult(success=True, tenant=tenant)

    async def create_tenant(self, db: AsyncSession, data: TenantCreate) -> OperationResult:
        slug = data.slug or slugify(data.name)
        if not slug or not re.match(SLUG_PATTERN, slug):
            return OperationResult.fail(INVALID_SLUG)

        try:
            if await self.tenant_repository.find_by_name_or_slug(db, data.name, slug) is not None:
                return OperationResult.fail(TENANT_ALREADY_EXISTS, ErrorCode.CONFLICT)
            tenant = await self.tenant_repository.create(db, {"name": data.name, "slug": slug}, Tenant)
        except ValueError:
            # unique index caught a concurrent insert
            return OperationResult.fail(TENANT_ALREADY_EXISTS, ErrorCode.CONFLICT)
        except SQLAlchemyError:
            logger.exception("Failed to create tenant %s", data.name)
            return OperationResult.fail(CREATE_FAILED, ErrorCode.UNAVAILABLE)

        logger.info("Created tenant %s (%s)", tenant.slug, tenant.id)
        return OperationResult.ok(tenant)


@lru_cache()
def get_tenant_service() -> TenantService:
    return TenantService(
        user_role_repository=get_user_role_repository(),
        tenant_repository=get_tenant_repository(),
        session_repository=get_session_repository(),
    )

"""
Request authentication and route guards.

Session issuance is owned by the external authentication provider; this
module only resolves an incoming credential into an ``AuthContext`` and
turns the tenant-scoped permission set into allow/deny decisions.

Guards fail closed: an unexpected error while evaluating access is logged
and answered with 403.
"""
import logging
import secrets
from datetime import datetime, timezone
from functools import lru_cache
from typing import Annotated, Iterable, Literal, Optional, Protocol

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.repositories import SessionRepository, get_session_repository
from peopleflow.api.v1.schemas import AuthContext, PermissionContext, SessionInfo, User
from peopleflow.api.v1.services import PermissionAggregationService, get_permission_aggregation_service
from peopleflow.core.config import settings
from peopleflow.core.permissions import has_all_permissions, has_any_permission, is_super_admin
from peopleflow.db.session import get_session

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "Sesión no válida o expirada"
TENANT_REQUIRED = "Selecciona un tenant para continuar"
INSUFFICIENT_PERMISSIONS = "Permisos insuficientes"
SUPER_ADMIN_REQUIRED = "Se requieren privilegios de super administrador"


def verify_api_key(x_api_key: str = Header(...)) -> str:
    if not secrets.compare_digest(x_api_key, settings.API_KEY):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="API Key inválida")
    return x_api_key


class AuthProvider(Protocol):
    """Given request credentials, resolve a principal or return None."""

    async def get_session(self, request: Request, db: AsyncSession) -> Optional[AuthContext]:
        ...


class DatabaseSessionProvider:
    """Resolves the session token (cookie or Bearer header) against the sessions table."""

    def __init__(self, session_repository: SessionRepository):
        self.session_repository = session_repository

    @staticmethod
    def extract_token(request: Request) -> Optional[str]:
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
        if token:
            return token

        auth_header = request.headers.get("Authorization", "")
        scheme, _, credentials = auth_header.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()
        return None

    async def get_session(self, request: Request, db: AsyncSession) -> Optional[AuthContext]:
        token = self.extract_token(request)
        if not token:
            return None

        session = await self.session_repository.find_by_token(db, token)
        if session is None:
            return None

        expires_at = session.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at <= datetime.now(timezone.utc):
            return None

        return AuthContext(user=User.model_validate(session.user), session=SessionInfo.model_validate(session))


@lru_cache()
def get_auth_provider() -> AuthProvider:
    return DatabaseSessionProvider(session_repository=get_session_repository())


async def get_optional_auth_context(
        request: Request,
        db: Annotated[AsyncSession, Depends(get_session)],
        provider: Annotated[AuthProvider, Depends(get_auth_provider)],
) -> Optional[AuthContext]:
    """Current principal, or None when the request carries no valid session."""
    try:
        return await provider.get_session(request, db)
    except SQLAlchemyError:
        logger.exception("Session lookup failed; treating request as unauthenticated")
        return None


async def get_auth_context(
        auth: Annotated[Optional[AuthContext], Depends(get_optional_auth_context)],
) -> AuthContext:
    if auth is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHENTICATED)
    return auth


async def get_permission_context(
        auth: Annotated[AuthContext, Depends(get_auth_context)],
        db: Annotated[AsyncSession, Depends(get_session)],
        aggregation_service: Annotated[PermissionAggregationService, Depends(get_permission_aggregation_service)],
) -> PermissionContext:
    tenant_id = auth.session.active_tenant_id
    permissions = await aggregation_service.get_effective_permissions(db, auth.user.id, tenant_id)
    return PermissionContext(
        auth=auth,
        tenant_id=tenant_id,
        permissions=permissions,
        is_super_admin=is_super_admin(permissions),
    )


def require_permissions(
        required_permissions: Iterable[str],
        mode: Literal["all", "any"] = "all",
        require_tenant: bool = True,
):
    """
    Build a dependency that admits the request only when the active-tenant
    permission set satisfies `required_permissions`.

    Usage:
        @router.get("", dependencies=[Depends(require_permissions(["roles:acceder"]))])
    or, to also receive the context:
        context: Annotated[PermissionContext, Depends(require_permissions([...]))]
    """
    required = list(required_permissions)
    check = has_all_permissions if mode == "all" else has_any_permission

    async def dependency(context: Annotated[PermissionContext, Depends(get_permission_context)]) -> PermissionContext:
        if require_tenant and context.tenant_id is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=TENANT_REQUIRED)

        try:
            allowed = check(context.permissions, required)
        except Exception:
            logger.exception("Permission evaluation failed for user %s", context.auth.user.id)
            allowed = False

        if not allowed:
            logger.warning(
                "Denied user %s in tenant %s: requires %s (%s)",
                context.auth.user.id, context.tenant_id, required, mode,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=INSUFFICIENT_PERMISSIONS)
        return context

    return dependency


async def require_super_admin(
        context: Annotated[PermissionContext, Depends(get_permission_context)],
) -> PermissionContext:
    if not context.is_super_admin:
        logger.warning("Denied super-admin area to user %s", context.auth.user.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=SUPER_ADMIN_REQUIRED)
    return context

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.repositories import PermissionRepository, get_permission_repository
from peopleflow.api.v1.schemas import (
    AuthContext,
    Permission,
    PermissionCheckRequest,
    PermissionCheckResponse,
    PermissionContext,
    PermissionFilter,
    UserPermissionsResponse,
)
from peopleflow.api.v1.services import PermissionAggregationService, get_permission_aggregation_service
from peopleflow.core.permissions import (
    can_access_route,
    get_accessible_resources,
    get_default_route,
    get_required_permission,
    has_all_permissions,
    has_any_permission,
)
from peopleflow.core.permissions.routes import is_public_route
from peopleflow.core.routers import filter
from peopleflow.core.schemas import ApiResponse
from peopleflow.core.security import (
    get_optional_auth_context,
    get_permission_context,
    require_permissions,
    verify_api_key,
)
from peopleflow.db.session import get_session

prefix = "/permisos"
router = APIRouter(prefix=prefix, dependencies=[Depends(verify_api_key)])


@router.get("/mis-permisos", response_model=ApiResponse)
async def read_my_permissions(
        context: Annotated[PermissionContext, Depends(get_permission_context)],
):
    """Permission set of the current user in the session's active tenant."""
    permissions = sorted(context.permissions)
    data = UserPermissionsResponse(
        tenant_id=context.tenant_id,
        is_super_admin=context.is_super_admin,
        permissions=permissions,
        resources=sorted(get_accessible_resources(permissions)),
    )
    return ApiResponse(status_code=status.HTTP_200_OK, data=data)


@router.post("/verificar", response_model=ApiResponse)
async def check_permissions(
        payload: PermissionCheckRequest,
        auth: Annotated[Optional[AuthContext], Depends(get_optional_auth_context)],
        db: Annotated[AsyncSession, Depends(get_session)],
        aggregation_service: Annotated[PermissionAggregationService, Depends(get_permission_aggregation_service)],
):
    """Answer whether the caller holds the given permissions. Anonymous callers get `false`."""
    allowed = False
    if auth is not None:
        permissions = await aggregation_service.get_effective_permissions(
            db, auth.user.id, auth.session.active_tenant_id)
        check = has_all_permissions if payload.mode == "all" else has_any_permission
        allowed = check(permissions, payload.permissions)
    return ApiResponse(status_code=status.HTTP_200_OK, data=PermissionCheckResponse(allowed=allowed))


@router.get("/ruta-por-defecto", response_model=ApiResponse)
async def read_default_route(
        context: Annotated[PermissionContext, Depends(get_permission_context)],
):
    return ApiResponse(status_code=status.HTTP_200_OK, data={"route": get_default_route(context.permissions)})


@router.get("/acceso-ruta", response_model=ApiResponse)
async def check_route_access(
        path: Annotated[str, Query(min_length=1)],
        auth: Annotated[Optional[AuthContext], Depends(get_optional_auth_context)],
        db: Annotated[AsyncSession, Depends(get_session)],
        aggregation_service: Annotated[PermissionAggregationService, Depends(get_permission_aggregation_service)],
):
    """Route-level check used by the frontend navigation guard."""
    if is_public_route(path):
        allowed = True
    elif auth is None:
        allowed = False
    else:
        permissions = await aggregation_service.get_effective_permissions(
            db, auth.user.id, auth.session.active_tenant_id)
        allowed = can_access_route(permissions, path)

    return ApiResponse(
        status_code=status.HTTP_200_OK,
        data={"path": path, "allowed": allowed, "required_permission": get_required_permission(path)},
    )


@router.get("", response_model=ApiResponse, dependencies=[Depends(require_permissions(["roles:acceder"]))])
async def filter_permissions(
        filters: Annotated[PermissionFilter, Query()],
        db: Annotated[AsyncSession, Depends(get_session)],
        permission_repository: Annotated[PermissionRepository, Depends(get_permission_repository)],
):
    """Paginated permission catalogue, for building role editors."""
    return await filter(filters, db, permission_repository, Permission)


@router.get("/{permission_id}", response_model=ApiResponse, dependencies=[Depends(require_permissions(["roles:acceder"]))])
async def read_permission(
        permission_id: UUID,
        db: Annotated[AsyncSession, Depends(get_session)],
        permission_repository: Annotated[PermissionRepository, Depends(get_permission_repository)],
):
    permission = await permission_repository.find_by_id(db, permission_id)
    if not permission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Permiso no encontrado")
    return ApiResponse(status_code=status.HTTP_200_OK, data=permission)

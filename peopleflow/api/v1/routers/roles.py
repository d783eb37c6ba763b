from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.repositories import RoleRepository, get_role_repository
from peopleflow.api.v1.schemas import (
    PermissionContext,
    Role,
    RoleCreate,
    RoleFilter,
    RolePermissionsUpdate,
    RoleUpdate,
)
from peopleflow.api.v1.services import RoleService, get_role_service
from peopleflow.core.routers import filter, to_api_response
from peopleflow.core.schemas import ApiResponse
from peopleflow.core.security import require_permissions, verify_api_key
from peopleflow.db.session import get_session

prefix = "/roles"
router = APIRouter(prefix=prefix, dependencies=[Depends(verify_api_key)])


@router.get("/resumen", response_model=ApiResponse)
async def list_roles_with_stats(
        context: Annotated[PermissionContext, Depends(require_permissions(["roles:acceder"]))],
        db: Annotated[AsyncSession, Depends(get_session)],
        role_service: Annotated[RoleService, Depends(get_role_service)],
):
    """Roles of the active tenant with permission and user counts."""
    return to_api_response(await role_service.list_roles(db, context.tenant_id))


@router.get("/{role_id}", response_model=ApiResponse)
async def read_role(
        role_id: UUID,
        context: Annotated[PermissionContext, Depends(require_permissions(["roles:acceder"]))],
        db: Annotated[AsyncSession, Depends(get_session)],
        role_service: Annotated[RoleService, Depends(get_role_service)],
):
    """Get a role by ID, including permissions."""
    return to_api_response(await role_service.get_role(db, context.tenant_id, role_id))


@router.put("/{role_id}/permisos", response_model=ApiResponse)
async def assign_permissions(
        role_id: UUID,
        payload: RolePermissionsUpdate,
        context: Annotated[PermissionContext, Depends(require_permissions(["roles:asignar-permisos"]))],
        db: Annotated[AsyncSession, Depends(get_session)],
        role_service: Annotated[RoleService, Depends(get_role_service)],
):
    """Replace the permission set of a role."""
    result = await role_service.assign_permissions(db, context.tenant_id, role_id, payload.permission_ids)
    return to_api_response(result, detail="Permisos actualizados con éxito")


@router.put("/{role_id}", response_model=ApiResponse)
async def update_role(
        role_id: UUID,
        role: RoleUpdate,
        context: Annotated[PermissionContext, Depends(require_permissions(["roles:editar"]))],
        db: Annotated[AsyncSession, Depends(get_session)],
        role_service: Annotated[RoleService, Depends(get_role_service)],
):
    return to_api_response(await role_service.update_role(db, context.tenant_id, role_id, role))


@router.delete("/{role_id}", response_model=ApiResponse)
async def delete_role(
        role_id: UUID,
        context: Annotated[PermissionContext, Depends(require_permissions(["roles:eliminar"]))],
        db: Annotated[AsyncSession, Depends(get_session)],
        role_service: Annotated[RoleService, Depends(get_role_service)],
):
    result = await role_service.delete_role(db, context.tenant_id, role_id)
    return to_api_response(result, detail="Rol eliminado con éxito")


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
        role: RoleCreate,
        context: Annotated[PermissionContext, Depends(require_permissions(["roles:crear"]))],
        db: Annotated[AsyncSession, Depends(get_session)],
        role_service: Annotated[RoleService, Depends(get_role_service)],
):
    """Create a role in the active tenant."""
    result = await role_service.create_role(db, context.tenant_id, role)
    return to_api_response(result, status.HTTP_201_CREATED)


@router.get("", response_model=ApiResponse)
async def filter_roles(
        filters: Annotated[RoleFilter, Query()],
        context: Annotated[PermissionContext, Depends(require_permissions(["roles:acceder"]))],
        db: Annotated[AsyncSession, Depends(get_session)],
        role_repository: Annotated[RoleRepository, Depends(get_role_repository)],
):
    """Paginated roles visible in the active tenant."""
    return await filter(filters, db, role_repository, Role, tenant_id=context.tenant_id)

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.schemas import PermissionContext, UserInvite, UserRolesUpdate
from peopleflow.api.v1.services import UserRoleService, get_user_role_service
from peopleflow.core.routers import to_api_response
from peopleflow.core.schemas import ApiResponse
from peopleflow.core.security import require_permissions, verify_api_key
from peopleflow.db.session import get_session

prefix = "/usuarios"
router = APIRouter(prefix=prefix, dependencies=[Depends(verify_api_key)])


@router.get("", response_model=ApiResponse)
async def list_users(
        context: Annotated[PermissionContext, Depends(require_permissions(["usuarios:acceder"]))],
        db: Annotated[AsyncSession, Depends(get_session)],
        user_role_service: Annotated[UserRoleService, Depends(get_user_role_service)],
):
    """Users of the active tenant with their role names there."""
    return to_api_response(await user_role_service.list_tenant_users(db, context.tenant_id))


@router.put("/{user_id}/roles", response_model=ApiResponse)
async def update_user_roles(
        user_id: UUID,
        payload: UserRolesUpdate,
        context: Annotated[PermissionContext, Depends(require_permissions(["usuarios:asignar-roles"]))],
        db: Annotated[AsyncSession, Depends(get_session)],
        user_role_service: Annotated[UserRoleService, Depends(get_user_role_service)],
):
    result = await user_role_service.update_user_roles(db, context.tenant_id, user_id, payload.role_ids)
    return to_api_response(result, detail="Roles actualizados con éxito")


@router.post("/invitar", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def invite_user(
        payload: UserInvite,
        context: Annotated[PermissionContext, Depends(require_permissions(["usuarios:invitar-tenant"]))],
        db: Annotated[AsyncSession, Depends(get_session)],
        user_role_service: Annotated[UserRoleService, Depends(get_user_role_service)],
):
    """Give an existing account its first roles in the active tenant."""
    result = await user_role_service.assign_user_to_tenant(db, context.tenant_id, payload.user_id, payload.role_ids)
    return to_api_response(result, status.HTTP_201_CREATED, "Usuario agregado al tenant")


@router.delete("/{user_id}", response_model=ApiResponse)
async def remove_user(
        user_id: UUID,
        context: Annotated[PermissionContext, Depends(require_permissions(["usuarios:eliminar"]))],
        db: Annotated[AsyncSession, Depends(get_session)],
        user_role_service: Annotated[UserRoleService, Depends(get_user_role_service)],
):
    result = await user_role_service.remove_user_from_tenant(db, context.tenant_id, user_id, context.auth.user.id)
    return to_api_response(result, detail="Usuario eliminado del tenant")

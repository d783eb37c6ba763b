import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.api.v1.schemas import AuthContext, PermissionContext, SwitchTenantRequest, TenantCreate
from peopleflow.api.v1.services import TenantService, get_tenant_service
from peopleflow.core.config import settings
from peopleflow.core.middlewares import limiter
from peopleflow.core.routers import to_api_response
from peopleflow.core.schemas import ApiResponse
from peopleflow.core.security import get_auth_context, require_super_admin, verify_api_key
from peopleflow.db.session import get_session

logger = logging.getLogger(__name__)

prefix = "/tenants"
router = APIRouter(prefix=prefix, dependencies=[Depends(verify_api_key)])


@router.get("", response_model=ApiResponse)
async def list_my_tenants(
        auth: Annotated[AuthContext, Depends(get_auth_context)],
        db: Annotated[AsyncSession, Depends(get_session)],
        tenant_service: Annotated[TenantService, Depends(get_tenant_service)],
):
    """Tenants where the current user holds at least one role, with the role names."""
    result = await tenant_service.list_accessible_tenants(db, auth.user.id)
    return to_api_response(result)


@router.get("/actual", response_model=ApiResponse)
async def read_current_tenant(
        auth: Annotated[AuthContext, Depends(get_auth_context)],
        db: Annotated[AsyncSession, Depends(get_session)],
        tenant_service: Annotated[TenantService, Depends(get_tenant_service)],
):
    result = await tenant_service.get_current_tenant(db, auth.session.token)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    return ApiResponse(status_code=status.HTTP_200_OK, data=result.tenant)


@router.post("/resolver", response_model=ApiResponse)
async def resolve_tenant(
        auth: Annotated[AuthContext, Depends(get_auth_context)],
        db: Annotated[AsyncSession, Depends(get_session)],
        tenant_service: Annotated[TenantService, Depends(get_tenant_service)],
):
    """
    Decide where a freshly authenticated session goes: keep its binding,
    auto-bind a sole tenant, ask for a selection, or deny.
    """
    resolution = await tenant_service.resolve_session_tenant(db, auth)
    return ApiResponse(status_code=status.HTTP_200_OK, error=resolution.error, data=resolution)


@router.post("/cambiar", response_model=ApiResponse)
@limiter.limit(settings.TENANT_SWITCH_RATE_LIMIT)
async def switch_tenant(
        request: Request,
        response: Response,
        payload: SwitchTenantRequest,
        auth: Annotated[AuthContext, Depends(get_auth_context)],
        db: Annotated[AsyncSession, Depends(get_session)],
        tenant_service: Annotated[TenantService, Depends(get_tenant_service)],
):
    """Bind the session to another tenant, or unbind it with `tenant_id: null`."""
    result = await tenant_service.switch_active_tenant(db, auth.session.token, auth.user.id, payload.tenant_id)
    if not result.success:
        response.status_code = status.HTTP_403_FORBIDDEN
        return ApiResponse(status_code=status.HTTP_403_FORBIDDEN, error=result.error, data=result)
    return ApiResponse(status_code=status.HTTP_200_OK, detail="Tenant cambiado con éxito", data=result)


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
        payload: TenantCreate,
        admin: Annotated[PermissionContext, Depends(require_super_admin)],
        db: Annotated[AsyncSession, Depends(get_session)],
        tenant_service: Annotated[TenantService, Depends(get_tenant_service)],
):
    result = await tenant_service.create_tenant(db, payload)
    if result.success:
        logger.info("Tenant %s created by %s", result.data.slug, admin.auth.user.id)
    return to_api_response(result, status.HTTP_201_CREATED, "Tenant creado con éxito")

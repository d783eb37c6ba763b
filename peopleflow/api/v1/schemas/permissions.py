from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field

from peopleflow.core.schemas import BaseSchema, BaseFilter


class Permission(BaseSchema):
    id: UUID
    name: str
    resource: str
    action: str
    description: Optional[str] = None
    is_modular: bool = False


class PermissionFilter(BaseFilter):
    name__icontains: Optional[str] = None
    resource: Optional[str] = None
    sort: Optional[List[str]] = ["resource+", "action+"]


class PermissionCheckRequest(BaseSchema):
    permissions: List[str] = Field(..., description="Permissions in resource:action format")
    mode: Literal["any", "all"] = "all"


class PermissionCheckResponse(BaseSchema):
    allowed: bool


class UserPermissionsResponse(BaseSchema):
    tenant_id: Optional[UUID] = None
    is_super_admin: bool
    permissions: List[str]
    resources: List[str]

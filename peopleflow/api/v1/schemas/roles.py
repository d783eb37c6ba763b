from typing import List, Optional
from uuid import UUID
from datetime import datetime

from pydantic import Field, field_validator

from peopleflow.api.v1.schemas.permissions import Permission
from peopleflow.core.schemas import BaseSchema, BaseFilter


class RoleBase(BaseSchema):
    name: str = Field(..., min_length=2, max_length=50)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class RoleCreate(RoleBase):
    pass


class RoleUpdate(RoleBase):
    name: Optional[str] = Field(None, min_length=2, max_length=50)


class Role(BaseSchema):
    id: UUID
    name: str
    description: Optional[str] = None
    tenant_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class RoleWithPermissions(Role):
    permissions: List[Permission]


class RoleWithStats(Role):
    permissions_count: int
    users_count: int


class RolePermissionsUpdate(BaseSchema):
    permission_ids: List[UUID]


class RoleFilter(BaseFilter):
    name__icontains: Optional[str] = None
    description__icontains: Optional[str] = None

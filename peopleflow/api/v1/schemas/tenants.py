import re
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from pydantic import Field, field_validator

from peopleflow.core.schemas import BaseSchema

SLUG_PATTERN = r"^[a-z0-9-]+$"


def slugify(name: str) -> str:
    """Lowercase, whitespace to '-', drop anything outside [a-z0-9-]."""
    slug = re.sub(r"\s+", "-", name.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


class Tenant(BaseSchema):
    id: UUID
    name: str
    slug: str
    created_at: datetime
    updated_at: datetime


class TenantWithRoles(Tenant):
    roles: List[str] = []


class TenantCreate(BaseSchema):
    name: str = Field(..., min_length=2, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=100, pattern=SLUG_PATTERN)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class SwitchTenantRequest(BaseSchema):
    tenant_id: Optional[UUID] = None

from typing import List
from uuid import UUID

from pydantic import EmailStr, Field

from peopleflow.core.schemas import BaseSchema


class User(BaseSchema):
    id: UUID
    email: EmailStr
    name: str
    email_verified: bool = False


class UserWithTenantRoles(User):
    roles: List[str] = []


class UserRolesUpdate(BaseSchema):
    role_ids: List[UUID] = Field(..., min_length=1)


class UserInvite(BaseSchema):
    user_id: UUID
    role_ids: List[UUID] = Field(..., min_length=1)

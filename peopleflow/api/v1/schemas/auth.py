from datetime import datetime
from typing import FrozenSet, Optional
from uuid import UUID

from peopleflow.api.v1.schemas.users import User
from peopleflow.core.schemas import BaseSchema


class SessionInfo(BaseSchema):
    token: str
    active_tenant_id: Optional[UUID] = None
    expires_at: datetime


class AuthContext(BaseSchema):
    """Principal resolved from the request credentials."""
    user: User
    session: SessionInfo


class PermissionContext(BaseSchema):
    """Authenticated principal plus its permission set in the session's active tenant."""
    auth: AuthContext
    tenant_id: Optional[UUID] = None
    permissions: FrozenSet[str] = frozenset()
    is_super_admin: bool = False

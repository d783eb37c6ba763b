"""Result objects returned by the use cases. Failures carry a user-facing message."""
from enum import Enum
from typing import Any, List, Optional
from uuid import UUID

from peopleflow.api.v1.schemas.tenants import Tenant, TenantWithRoles
from peopleflow.core.schemas import BaseSchema


class ErrorCode(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    INVALID = "invalid"
    UNAVAILABLE = "unavailable"


class OperationResult(BaseSchema):
    success: bool
    error: Optional[str] = None
    code: Optional[ErrorCode] = None
    data: Optional[Any] = None

    @classmethod
    def ok(cls, data: Any = None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: ErrorCode = ErrorCode.INVALID):
        return cls(success=False, error=error, code=code)


class UserPermissionsResult(BaseSchema):
    success: bool
    permissions: List[str] = []
    error: Optional[str] = None


class SwitchTenantResult(BaseSchema):
    success: bool
    error: Optional[str] = None
    active_tenant_id: Optional[UUID] = None
    redirect_to: Optional[str] = None


class TenantBindingState(str, Enum):
    NO_TENANT = "no_tenant"
    SINGLE_TENANT_AUTO_BOUND = "single_tenant_auto_bound"
    MULTI_TENANT_UNSELECTED = "multi_tenant_unselected"
    BOUND = "bound"
    DENIED = "denied"


class TenantResolution(BaseSchema):
    state: TenantBindingState
    active_tenant_id: Optional[UUID] = None
    tenants: List[TenantWithRoles] = []
    is_super_admin: bool = False
    redirect_to: str
    error: Optional[str] = None


class CurrentTenantResult(BaseSchema):
    success: bool
    tenant: Optional[Tenant] = None
    error: Optional[str] = None

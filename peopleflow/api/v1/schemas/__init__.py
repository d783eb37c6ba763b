from .permissions import (
    Permission,
    PermissionFilter,
    PermissionCheckRequest,
    PermissionCheckResponse,
    UserPermissionsResponse,
)
from .roles import (
    RoleCreate,
    RoleUpdate,
    Role,
    RoleWithPermissions,
    RoleWithStats,
    RolePermissionsUpdate,
    RoleFilter,
)
from .tenants import Tenant, TenantWithRoles, TenantCreate, SwitchTenantRequest, slugify
from .users import User, UserWithTenantRoles, UserRolesUpdate, UserInvite
from .auth import AuthContext, PermissionContext, SessionInfo
from .results import (
    CurrentTenantResult,
    ErrorCode,
    OperationResult,
    SwitchTenantResult,
    TenantBindingState,
    TenantResolution,
    UserPermissionsResult,
)

__all__ = [
    "Permission",
    "PermissionFilter",
    "PermissionCheckRequest",
    "PermissionCheckResponse",
    "UserPermissionsResponse",
    "RoleCreate",
    "RoleUpdate",
    "Role",
    "RoleWithPermissions",
    "RoleWithStats",
    "RolePermissionsUpdate",
    "RoleFilter",
    "Tenant",
    "TenantWithRoles",
    "TenantCreate",
    "SwitchTenantRequest",
    "slugify",
    "User",
    "UserWithTenantRoles",
    "UserRolesUpdate",
    "UserInvite",
    "AuthContext",
    "PermissionContext",
    "SessionInfo",
    "CurrentTenantResult",
    "ErrorCode",
    "OperationResult",
    "SwitchTenantResult",
    "TenantBindingState",
    "TenantResolution",
    "UserPermissionsResult",
]

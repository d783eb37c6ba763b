from .permission_aggregation_service import PermissionAggregationService, get_permission_aggregation_service
from .tenant_service import TenantService, get_tenant_service
from .role_service import RoleService, get_role_service
from .user_role_service import UserRoleService, get_user_role_service

__all__ = [
    "PermissionAggregationService",
    "get_permission_aggregation_service",
    "TenantService",
    "get_tenant_service",
    "RoleService",
    "get_role_service",
    "UserRoleService",
    "get_user_role_service",
]

from .constants import (
    HIDDEN_ADMIN_ROLE_NAME,
    MANAGE_ACTION,
    SUPER_ADMIN_PERMISSION_NAME,
    SUPER_ADMIN_RESOURCE,
    is_modular_permission,
)
from .permission_service import (
    PermissionName,
    get_accessible_resources,
    get_permissions_for_resource,
    has_all_permissions,
    has_any_permission,
    has_permission,
    has_resource_access,
    is_super_admin,
    parse_permission,
)
from .routes import (
    DEFAULT_ADMIN_ROUTE,
    DEFAULT_SUPER_ADMIN_ROUTE,
    FALLBACK_ROUTE,
    TENANT_SELECTION_ROUTE,
    can_access_route,
    get_default_route,
    get_required_permission,
)

__all__ = [
    "HIDDEN_ADMIN_ROLE_NAME",
    "MANAGE_ACTION",
    "SUPER_ADMIN_PERMISSION_NAME",
    "SUPER_ADMIN_RESOURCE",
    "is_modular_permission",
    "PermissionName",
    "get_accessible_resources",
    "get_permissions_for_resource",
    "has_all_permissions",
    "has_any_permission",
    "has_permission",
    "has_resource_access",
    "is_super_admin",
    "parse_permission",
    "DEFAULT_ADMIN_ROUTE",
    "DEFAULT_SUPER_ADMIN_ROUTE",
    "FALLBACK_ROUTE",
    "TENANT_SELECTION_ROUTE",
    "can_access_route",
    "get_default_route",
    "get_required_permission",
]

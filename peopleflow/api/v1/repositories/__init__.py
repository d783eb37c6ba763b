from .interfaces import IPermissionRepository, IUserRoleRepository
from .permission_repository import PermissionRepository, get_permission_repository
from .role_repository import RoleRepository, get_role_repository
from .session_repository import SessionRepository, get_session_repository
from .tenant_repository import TenantRepository, get_tenant_repository
from .user_role_repository import UserRoleRepository, get_user_role_repository

__all__ = [
    "IPermissionRepository",
    "IUserRoleRepository",
    "PermissionRepository",
    "RoleRepository",
    "SessionRepository",
    "TenantRepository",
    "UserRoleRepository",
    "get_permission_repository",
    "get_role_repository",
    "get_session_repository",
    "get_tenant_repository",
    "get_user_role_repository",
]

from .permissions import Permission
from .roles import Role
from .tenant import Tenant
from .role_permission import RolePermission
from .users import User
from .user_role import UserRole
from .sessions import Session


__all__ = [
    "Permission",
    "Role",
    "Tenant",
    "RolePermission",
    "User",
    "UserRole",
    "Session",
]

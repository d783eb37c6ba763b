from . import (
    permissions,
    roles,
    tenants,
    users,
)

__all__ = [
    "permissions",
    "roles",
    "tenants",
    "users",
]

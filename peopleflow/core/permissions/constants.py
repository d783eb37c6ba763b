SUPER_ADMIN_PERMISSION_NAME = "super:admin"
SUPER_ADMIN_RESOURCE = "super"

# Action that grants every other action on the same resource
MANAGE_ACTION = "gestionar"

PERMISSION_SEPARATOR = ":"

# Global super-admin role, provisioned by seed data and never exposed to role administration
HIDDEN_ADMIN_ROLE_NAME = "administrador"


def is_modular_permission(name: str) -> bool:
    return name == SUPER_ADMIN_PERMISSION_NAME or name.endswith(f"{PERMISSION_SEPARATOR}{MANAGE_ACTION}")

"""
Frontend route table.

Maps every protected route of the web client to the permission that unlocks
it, and picks the landing route for a freshly scoped permission set.
"""
from typing import Dict, Iterable, List, Optional, Tuple

from peopleflow.core.permissions.constants import SUPER_ADMIN_PERMISSION_NAME
from peopleflow.core.permissions.permission_service import (
    _as_set,
    has_permission,
    is_super_admin,
    parse_permission,
)

DEFAULT_SUPER_ADMIN_ROUTE = "/super-admin"
DEFAULT_ADMIN_ROUTE = "/admin/usuarios"
FALLBACK_ROUTE = "/access-denied"
TENANT_SELECTION_ROUTE = "/select-tenant"

PUBLIC_ROUTES: Tuple[str, ...] = ("/sign-in", "/api/auth", "/access-denied")

# Require a session but no tenant-scoped permission
AUTHENTICATED_ROUTES: Tuple[str, ...] = (TENANT_SELECTION_ROUTE,)

ROUTE_PERMISSIONS: Dict[str, str] = {
    # Administración
    "/admin/usuarios": "usuarios:acceder",
    "/admin/usuarios/crear": "usuarios:crear",
    "/admin/usuarios/editar": "usuarios:editar",
    "/admin/roles-permisos": "roles:acceder",
    "/admin/roles-permisos/crear": "roles:crear",
    "/admin/roles-permisos/editar": "roles:editar",
    # Finanzas
    "/finanzas/ingresos": "ingresos:acceder",
    "/finanzas/ingresos/crear": "ingresos:crear",
    "/finanzas/ingresos/editar": "ingresos:editar",
    "/finanzas/egresos": "egresos:acceder",
    "/finanzas/egresos/crear": "egresos:crear",
    "/finanzas/egresos/editar": "egresos:editar",
    # Reclutamiento
    "/reclutamiento/vacantes": "vacantes:acceder",
    "/reclutamiento/vacantes/crear": "vacantes:crear",
    "/reclutamiento/vacantes/editar": "vacantes:editar",
    "/reclutamiento/kanban": "candidatos:acceder",
    "/reclutamiento/reportes": "reportes-reclutamiento:acceder",
    # Generación de leads
    "/generacion-de-leads/leads": "leads:acceder",
    "/generacion-de-leads/leads/crear": "leads:crear",
    "/generacion-de-leads/leads/editar": "leads:editar",
    "/generacion-de-leads/kanban": "leads:acceder",
    "/generacion-de-leads/reportes": "reportes-ventas:acceder",
    # Sistema
    "/system/config": "configuracion:acceder",
    "/system/activity": "actividad:acceder",
    # Super administración
    DEFAULT_SUPER_ADMIN_ROUTE: SUPER_ADMIN_PERMISSION_NAME,
}

ROUTE_PRIORITY: Tuple[str, ...] = (
    "/admin/usuarios",
    "/admin/roles-permisos",
    "/finanzas/ingresos",
    "/finanzas/egresos",
    "/reclutamiento/vacantes",
    "/reclutamiento/kanban",
    "/reclutamiento/reportes",
    "/generacion-de-leads/leads",
    "/generacion-de-leads/kanban",
    "/generacion-de-leads/reportes",
    "/system/config",
    "/system/activity",
)


def _matches(pathname: str, route: str) -> bool:
    return pathname == route or pathname.startswith(f"{route}/")


def get_required_permission(pathname: str) -> Optional[str]:
    """Exact match first, then the longest registered prefix."""
    if pathname in ROUTE_PERMISSIONS:
        return ROUTE_PERMISSIONS[pathname]

    candidates = [route for route in ROUTE_PERMISSIONS if _matches(pathname, route)]
    if not candidates:
        return None
    return ROUTE_PERMISSIONS[max(candidates, key=len)]


def is_public_route(pathname: str) -> bool:
    return any(_matches(pathname, route) for route in PUBLIC_ROUTES)


def is_authenticated_route(pathname: str) -> bool:
    return any(_matches(pathname, route) for route in AUTHENTICATED_ROUTES)


def requires_super_admin(pathname: str) -> bool:
    return get_required_permission(pathname) == SUPER_ADMIN_PERMISSION_NAME


def can_access_route(permissions: Optional[Iterable[str]], pathname: str) -> bool:
    if is_public_route(pathname):
        return True
    if is_super_admin(permissions):
        return True

    required = get_required_permission(pathname)
    if required is None:
        return True
    return has_permission(permissions, required)


def get_routes_for_resource(resource: str) -> List[str]:
    routes = []
    for route, permission in ROUTE_PERMISSIONS.items():
        parsed = parse_permission(permission)
        if parsed is not None and parsed.resource == resource:
            routes.append(route)
    return routes


def get_default_route(permissions: Optional[Iterable[str]]) -> str:
    """
    Landing route for an already tenant-scoped permission set.

    Only membership is consulted, so the result does not depend on the order
    of the input.
    """
    granted = _as_set(permissions)
    if not granted:
        return FALLBACK_ROUTE
    if is_super_admin(granted):
        return DEFAULT_SUPER_ADMIN_ROUTE

    for route in ROUTE_PRIORITY:
        if has_permission(granted, ROUTE_PERMISSIONS[route]):
            return route

    for route, permission in ROUTE_PERMISSIONS.items():
        if route == DEFAULT_SUPER_ADMIN_ROUTE:
            continue
        if has_permission(granted, permission):
            return route

    return FALLBACK_ROUTE

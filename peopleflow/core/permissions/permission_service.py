"""
Permission evaluation.

Pure functions over a caller-supplied collection of permission names that has
already been scoped to the active tenant. Nothing here touches the store and
nothing here raises: missing, empty or malformed input always evaluates to
"no access".

Matching order for a single permission:
    1. the super-admin marker grants everything;
    2. exact name match;
    3. ``<resource>:gestionar`` grants every other action on that resource.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set

from peopleflow.core.permissions.constants import (
    MANAGE_ACTION,
    PERMISSION_SEPARATOR,
    SUPER_ADMIN_PERMISSION_NAME,
    SUPER_ADMIN_RESOURCE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PermissionName:
    """A validated ``resource:action`` pair."""

    resource: str
    action: str

    def __str__(self) -> str:
        return f"{self.resource}{PERMISSION_SEPARATOR}{self.action}"

    @property
    def is_manage(self) -> bool:
        return self.action == MANAGE_ACTION

    @property
    def manage_permission(self) -> str:
        return f"{self.resource}{PERMISSION_SEPARATOR}{MANAGE_ACTION}"

    @classmethod
    def parse(cls, value: object) -> Optional[PermissionName]:
        """Return the pair, or None unless the value splits into exactly two non-empty segments."""
        if not isinstance(value, str):
            return None
        parts = value.split(PERMISSION_SEPARATOR)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            return None
        return cls(resource=parts[0], action=parts[1])


def _as_set(permissions: Optional[Iterable[str]]) -> Set[str]:
    if not permissions:
        return set()
    return {p for p in permissions if isinstance(p, str)}


def parse_permission(permission: object) -> Optional[PermissionName]:
    return PermissionName.parse(permission)


def is_super_admin(permissions: Optional[Iterable[str]]) -> bool:
    return SUPER_ADMIN_PERMISSION_NAME in _as_set(permissions)


def _has(granted: Set[str], permission: object) -> bool:
    parsed = PermissionName.parse(permission)
    if parsed is None:
        logger.debug("Malformed permission string treated as non-matching: %r", permission)
        return False
    if SUPER_ADMIN_PERMISSION_NAME in granted:
        return True
    if str(parsed) in granted:
        return True
    return not parsed.is_manage and parsed.manage_permission in granted


def has_permission(permissions: Optional[Iterable[str]], permission: object) -> bool:
    granted = _as_set(permissions)
    if not granted:
        return False
    return _has(granted, permission)


def has_any_permission(permissions: Optional[Iterable[str]], required: Optional[Iterable[str]]) -> bool:
    granted = _as_set(permissions)
    required = list(required or [])
    if not granted or not required:
        return False
    if SUPER_ADMIN_PERMISSION_NAME in granted:
        return True
    return any(_has(granted, p) for p in required)


def has_all_permissions(permissions: Optional[Iterable[str]], required: Optional[Iterable[str]]) -> bool:
    granted = _as_set(permissions)
    required = list(required or [])
    if not granted or not required:
        return False
    if SUPER_ADMIN_PERMISSION_NAME in granted:
        return True
    return all(_has(granted, p) for p in required)


def has_resource_access(permissions: Optional[Iterable[str]], resource: str) -> bool:
    granted = _as_set(permissions)
    if not granted or not resource:
        return False
    if SUPER_ADMIN_PERMISSION_NAME in granted:
        return True
    return any(parsed.resource == resource for parsed in _parsed(granted))


def get_accessible_resources(permissions: Optional[Iterable[str]]) -> Set[str]:
    return {
        parsed.resource
        for parsed in _parsed(_as_set(permissions))
        if parsed.resource != SUPER_ADMIN_RESOURCE
    }


def get_permissions_for_resource(permissions: Optional[Iterable[str]], resource: str) -> List[str]:
    if not permissions:
        return []
    result = []
    for permission in permissions:
        parsed = PermissionName.parse(permission)
        if parsed is not None and parsed.resource == resource and permission not in result:
            result.append(permission)
    return result


def _parsed(granted: Iterable[str]):
    for permission in granted:
        parsed = PermissionName.parse(permission)
        if parsed is not None:
            yield parsed

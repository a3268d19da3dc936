"""Permission sets: default templates per canonical role, custom overrides,
page-access and menu-visibility checks.

A PermissionSet is a plain nested dict of booleans::

    {"modules": {"dashboard": True, ...}, "special": {"isPlatformOwner": False, ...}}

Custom permissions stored on a Role row REPLACE the defaults wholesale; they
are never merged, so a partial custom set leaves missing categories denied.
"""

from __future__ import annotations

import copy
import json
import logging

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.services import acl
from horeca.services.acl import CanonicalRole

logger = logging.getLogger(__name__)

PermissionSet = dict[str, dict[str, bool]]

PERMISSION_KEYS: dict[str, tuple[str, ...]] = {
    "modules": (
        "dashboard", "labeling", "files", "learning", "haccp",
        "medicalBooks", "scheduleSalary", "employees", "equipment", "billing",
    ),
    "userManagement": ("viewUsers", "createUsers", "editUsers", "deleteUsers", "assignRoles"),
    "roleManagement": ("viewRoles", "createRoles", "editRoles", "deleteRoles"),
    "organization": ("viewSettings", "editSettings", "viewReports", "manageTenants"),
    "points": ("viewPoints", "createPoints", "editPoints", "deletePoints"),
    "special": ("isPlatformOwner", "canAccessOwnerPages", "canManageBilling", "canViewAllData"),
}


def _build(value: bool = False, **overrides: dict[str, bool]) -> PermissionSet:
    perms = {cat: {key: value for key in keys} for cat, keys in PERMISSION_KEYS.items()}
    for cat, flags in overrides.items():
        perms[cat].update(flags)
    return perms


_MANAGER = _build(
    modules={k: True for k in PERMISSION_KEYS["modules"] if k != "billing"},
    organization={"viewReports": True},
    points={"viewPoints": True, "createPoints": True, "editPoints": True},
)

DEFAULT_PERMISSIONS: dict[str, PermissionSet] = {
    CanonicalRole.PLATFORM_OWNER.value: _build(True),
    CanonicalRole.ORGANIZATION_OWNER.value: _build(
        True,
        organization={"manageTenants": False},
        special={"isPlatformOwner": False, "canViewAllData": False},
    ),
    CanonicalRole.MANAGER.value: _MANAGER,
    CanonicalRole.POINT_MANAGER.value: _build(
        modules=_MANAGER["modules"],
        organization={"viewReports": True},
        points={"viewPoints": True, "editPoints": True},
    ),
    CanonicalRole.EMPLOYEE.value: _build(
        modules={"dashboard": True, "labeling": True, "learning": True, "haccp": True},
    ),
}


class PermissionSetModel(BaseModel):
    """Validates a PermissionSet payload coming from the API."""

    modules: dict[str, bool] = {}
    userManagement: dict[str, bool] = {}
    roleManagement: dict[str, bool] = {}
    organization: dict[str, bool] = {}
    points: dict[str, bool] = {}
    special: dict[str, bool] = {}


def get_default_permissions(role_name: str | None) -> PermissionSet:
    base = DEFAULT_PERMISSIONS.get(role_name or "", DEFAULT_PERMISSIONS[CanonicalRole.EMPLOYEE.value])
    return copy.deepcopy(base)


def get_user_permissions(role_name: str | None, custom=None) -> PermissionSet:
    """Return the custom set when one is stored, otherwise the role defaults."""
    if custom:
        try:
            parsed = json.loads(custom) if isinstance(custom, str) else custom
        except (TypeError, ValueError) as e:
            logger.warning(f"Failed to parse custom permissions for role {role_name}: {e}")
        else:
            if isinstance(parsed, dict):
                return parsed
            logger.warning(f"Custom permissions for role {role_name} are not an object, using defaults")
    return get_default_permissions(role_name)


async def get_user_permissions_with_role(
    db: AsyncSession, user_id: str, tenant_id: str | None = None,
) -> tuple[CanonicalRole | None, PermissionSet]:
    """Resolve the canonical role and the effective PermissionSet for a user."""
    role = await acl.get_user_role(db, user_id, tenant_id)
    assigned = await acl.get_assigned_role(db, user_id, tenant_id)
    custom = assigned.permissions if assigned else None
    return role, get_user_permissions(role.value if role else None, custom)


def has_permission(permissions: PermissionSet, category: str, key: str) -> bool:
    return (permissions.get(category) or {}).get(key) is True


# Page prefix -> module flag, checked in order
MODULE_PAGES: tuple[tuple[str, str], ...] = (
    ("/dashboard", "dashboard"),
    ("/labeling", "labeling"),
    ("/files", "files"),
    ("/learning", "learning"),
    ("/haccp", "haccp"),
    ("/medical-books", "medicalBooks"),
    ("/schedule-salary", "scheduleSalary"),
    ("/employees", "employees"),
    ("/equipment", "equipment"),
    ("/billing", "billing"),
)


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def can_access_page(permissions: PermissionSet, path: str) -> bool:
    """Gate a page path by the permission set. Unknown pages are allowed."""
    if _under(path, "/owner"):
        return has_permission(permissions, "special", "canAccessOwnerPages")
    if _under(path, "/partner"):
        return has_permission(permissions, "points", "viewPoints")
    for prefix, module in MODULE_PAGES:
        if _under(path, prefix):
            return has_permission(permissions, "modules", module)
    return True


def get_visible_menu_items(permissions: PermissionSet) -> list[str]:
    items = [
        prefix.lstrip("/") for prefix, module in MODULE_PAGES
        if has_permission(permissions, "modules", module)
    ]
    if has_permission(permissions, "userManagement", "viewUsers"):
        items.append("owner/users")
    if has_permission(permissions, "points", "viewPoints"):
        items.append("partner/points")
    return items

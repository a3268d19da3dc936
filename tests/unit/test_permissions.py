import json

import pytest

from horeca.models import Role, Tenant, User, UserRole
from horeca.services.acl import CanonicalRole
from horeca.services.permissions import (
    DEFAULT_PERMISSIONS,
    PERMISSION_KEYS,
    can_access_page,
    get_default_permissions,
    get_user_permissions,
    get_user_permissions_with_role,
    get_visible_menu_items,
    has_permission,
)


def test_defaults_cover_every_key():
    for role, perms in DEFAULT_PERMISSIONS.items():
        for category, keys in PERMISSION_KEYS.items():
            assert set(perms[category]) == set(keys), f"{role}.{category}"


def test_default_tables():
    platform = get_default_permissions("PLATFORM_OWNER")
    assert all(all(flags.values()) for flags in platform.values())

    owner = get_default_permissions("ORGANIZATION_OWNER")
    assert owner["special"]["canAccessOwnerPages"] is True
    assert owner["special"]["isPlatformOwner"] is False
    assert owner["organization"]["manageTenants"] is False

    manager = get_default_permissions("MANAGER")
    assert manager["modules"]["billing"] is False
    assert manager["points"]["createPoints"] is True
    assert manager["points"]["deletePoints"] is False
    assert manager["special"]["canAccessOwnerPages"] is False

    employee = get_default_permissions("EMPLOYEE")
    assert employee["modules"]["haccp"] is True
    assert employee["modules"]["employees"] is False
    assert not any(employee["userManagement"].values())


def test_unknown_role_gets_employee_defaults():
    assert get_default_permissions("Barista") == DEFAULT_PERMISSIONS["EMPLOYEE"]
    assert get_default_permissions(None) == DEFAULT_PERMISSIONS["EMPLOYEE"]


def test_defaults_are_copies():
    perms = get_default_permissions("MANAGER")
    perms["modules"]["billing"] = True
    assert DEFAULT_PERMISSIONS["MANAGER"]["modules"]["billing"] is False


def test_custom_permissions_replace_defaults():
    custom = {"modules": {"files": True}}
    perms = get_user_permissions("ORGANIZATION_OWNER", custom)
    assert perms == custom
    assert not has_permission(perms, "special", "canAccessOwnerPages")


def test_custom_permissions_from_json_string():
    custom = {"modules": {"learning": True}}
    assert get_user_permissions("EMPLOYEE", json.dumps(custom)) == custom


def test_unparseable_custom_permissions_fall_back(caplog):
    perms = get_user_permissions("MANAGER", "{not json")
    assert perms == DEFAULT_PERMISSIONS["MANAGER"]
    assert "Failed to parse custom permissions" in caplog.text


def test_has_permission_requires_true():
    perms = {"modules": {"files": "yes", "haccp": True}}
    assert has_permission(perms, "modules", "haccp")
    assert not has_permission(perms, "modules", "files")
    assert not has_permission(perms, "points", "viewPoints")


@pytest.mark.parametrize("path", ["/owner", "/owner/users", "/owner/roles/123"])
def test_owner_pages_follow_special_flag(path):
    perms = get_default_permissions("EMPLOYEE")
    assert not can_access_page(perms, path)
    perms["special"]["canAccessOwnerPages"] = True
    assert can_access_page(perms, path)


def test_page_prefix_must_be_a_segment():
    perms = get_default_permissions("EMPLOYEE")
    assert not can_access_page(perms, "/owner")
    assert can_access_page(perms, "/ownership")
    assert can_access_page(perms, "/haccp/journal")
    assert not can_access_page(perms, "/equipment")


def test_visible_menu_items():
    items = get_visible_menu_items(get_default_permissions("MANAGER"))
    assert "haccp" in items
    assert "billing" not in items
    assert "partner/points" in items
    assert "owner/users" not in items


async def _assign(db, role: Role) -> tuple[User, Tenant]:
    tenant = Tenant(name="T", slug=f"t-{role.name.lower()}")
    db.add_all([tenant, role])
    await db.flush()
    user = User(tenant_id=tenant.id, email=f"{role.name.lower()}@t.com", password_hash="x")
    db.add(user)
    await db.flush()
    db.add(UserRole(user_id=user.id, role_id=role.id, tenant_id=tenant.id))
    await db.commit()
    return user, tenant


async def test_with_role_returns_defaults_without_custom(db):
    user, tenant = await _assign(db, Role(name="PARTNER"))
    role, perms = await get_user_permissions_with_role(db, user.id, tenant.id)
    assert role == CanonicalRole.MANAGER
    assert perms == DEFAULT_PERMISSIONS["MANAGER"]


async def test_with_role_returns_stored_custom_unmerged(db):
    custom = {"modules": {"dashboard": True}, "special": {"canManageBilling": True}}
    user, tenant = await _assign(db, Role(name="EMPLOYEE", permissions=custom))
    role, perms = await get_user_permissions_with_role(db, user.id, tenant.id)
    assert role == CanonicalRole.EMPLOYEE
    assert perms == custom
    assert "points" not in perms

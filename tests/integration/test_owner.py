"""Integration tests for the owner console: roles, permissions, users and page access."""

from __future__ import annotations

from horeca.services.auth import authenticate, create_session
from horeca.services.tenant_bootstrap import signup


async def _role_id(client, name: str) -> str:
    roles = (await client.get("/api/owner/roles")).json()["roles"]
    return next(r["id"] for r in roles if r["name"] == name)


# ── Roles ─────────────────────────────────────────────────

async def test_owner_sees_system_roles_with_tenant_users(login, org, other_org):
    client = login(org.tokens["ORGANIZATION_OWNER"])
    resp = await client.get("/api/owner/roles")
    assert resp.status_code == 200
    roles = {r["name"]: r for r in resp.json()["roles"]}
    assert {"ORGANIZATION_OWNER", "MANAGER", "POINT_MANAGER", "EMPLOYEE"} <= set(roles)
    assert roles["EMPLOYEE"]["isSystem"] is True
    emails = {u["email"] for u in roles["EMPLOYEE"]["users"]}
    assert emails == {"cook@test.com"}
    assert "waiter@other.com" not in emails


async def test_non_owner_is_forbidden(login, org):
    client = login(org.tokens["MANAGER"])
    assert (await client.get("/api/owner/roles")).status_code == 403
    assert (await client.get("/api/owner/users")).status_code == 403


async def test_custom_role_lifecycle(login, org):
    client = login(org.tokens["ORGANIZATION_OWNER"])
    resp = await client.post("/api/owner/roles", json={
        "name": "Shift Lead", "description": "Runs the evening shift",
        "inheritsFrom": "POINT_MANAGER", "permissions": {"modules": {"haccp": True}},
    })
    assert resp.status_code == 201
    role = resp.json()["role"]
    assert role["tenantId"] == org.tenant.id
    assert role["isSystem"] is False
    assert role["permissions"]["modules"] == {"haccp": True}

    dup = await client.post("/api/owner/roles", json={"name": "Shift Lead"})
    assert dup.status_code == 409

    resp = await client.put(f"/api/owner/roles/{role['id']}", json={"name": "Senior Shift Lead"})
    assert resp.json()["role"]["name"] == "Senior Shift Lead"

    resp = await client.put(f"/api/owner/roles/{role['id']}/permissions", json={
        "permissions": {"modules": {"files": True}},
    })
    assert resp.json()["role"]["permissions"]["modules"] == {"files": True}

    assert (await client.delete(f"/api/owner/roles/{role['id']}")).json() == {"ok": True}


async def test_custom_role_validation(login, org):
    client = login(org.tokens["ORGANIZATION_OWNER"])
    resp = await client.post("/api/owner/roles", json={"name": "Bad", "permissions": {"modules": {"files": "maybe"}}})
    assert resp.status_code == 400
    resp = await client.post("/api/owner/roles", json={"name": "Ghost", "inheritsFrom": "WIZARD"})
    assert resp.status_code == 400
    resp = await client.post("/api/owner/roles", json={"name": "Boss", "inheritsFrom": "PLATFORM_OWNER"})
    assert resp.status_code == 403


async def test_org_owner_cannot_edit_global_roles(login, org):
    client = login(org.tokens["ORGANIZATION_OWNER"])
    employee_role = await _role_id(client, "EMPLOYEE")
    resp = await client.put(f"/api/owner/roles/{employee_role}/permissions", json={"permissions": {}})
    assert resp.status_code == 403
    assert (await client.delete(f"/api/owner/roles/{employee_role}")).status_code == 403


async def test_other_tenant_role_is_invisible(login, org, other_org):
    owner = login(org.tokens["ORGANIZATION_OWNER"])
    role = (await owner.post("/api/owner/roles", json={"name": "Barista"})).json()["role"]

    other = login(other_org.token)
    names = {r["name"] for r in (await other.get("/api/owner/roles")).json()["roles"]}
    assert "Barista" not in names
    assert (await other.put(f"/api/owner/roles/{role['id']}", json={"description": "x"})).status_code == 404


async def test_assigned_role_cannot_be_deleted(login, org):
    client = login(org.tokens["ORGANIZATION_OWNER"])
    role = (await client.post("/api/owner/roles", json={"name": "Barista", "inheritsFrom": "EMPLOYEE"})).json()["role"]
    resp = await client.post("/api/owner/users", json={
        "email": "barista@test.com", "name": "Bea", "roleName": "Barista", "pointId": org.point.id,
    })
    assert resp.status_code == 201

    resp = await client.delete(f"/api/owner/roles/{role['id']}")
    assert resp.status_code == 400


# ── Users ─────────────────────────────────────────────────

async def test_owner_lists_only_own_tenant_users(login, org, other_org):
    client = login(org.tokens["ORGANIZATION_OWNER"])
    users = (await client.get("/api/owner/users")).json()["users"]
    emails = {u["email"] for u in users}
    assert {"owner@test.com", "manager@test.com", "cook@test.com", org.point_user.email} == emails
    cook = next(u for u in users if u["email"] == "cook@test.com")
    assert cook["roles"] == ["EMPLOYEE"]
    assert cook["pointName"] == "Main Street"


async def test_owner_creates_user(login, org, other_org, session_factory):
    client = login(org.tokens["ORGANIZATION_OWNER"])
    resp = await client.post("/api/owner/users", json={
        "email": "New@Test.com", "name": "Nina", "roleName": "MANAGER",
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["user"]["email"] == "new@test.com"
    assert data["user"]["roles"] == ["MANAGER"]
    assert data["temporaryPassword"]

    async with session_factory() as db:
        assert await authenticate(db, "new@test.com", data["temporaryPassword"])

    assert (await client.post("/api/owner/users", json={
        "email": "new@test.com", "name": "Again", "roleName": "EMPLOYEE",
    })).status_code == 409
    assert (await client.post("/api/owner/users", json={
        "email": "x@test.com", "name": "X", "roleName": "NOPE",
    })).status_code == 404
    assert (await client.post("/api/owner/users", json={
        "email": "y@test.com", "name": "Y", "roleName": "EMPLOYEE", "pointId": other_org.point.id,
    })).status_code == 404


async def test_owner_cannot_grant_platform_owner(login, org):
    client = login(org.tokens["ORGANIZATION_OWNER"])
    resp = await client.post("/api/owner/users", json={
        "email": "root@test.com", "name": "Root", "roleName": "PLATFORM_OWNER",
    })
    assert resp.status_code == 403

    resp = await client.patch(f"/api/owner/users/{org.employee.id}/role", json={"roleName": "PLATFORM_OWNER"})
    assert resp.status_code == 403


async def test_other_tenant_role_cannot_be_granted(login, org, other_org):
    other = login(other_org.token)
    resp = await other.post("/api/owner/roles", json={"name": "Other Private", "inheritsFrom": "EMPLOYEE"})
    assert resp.status_code == 201

    client = login(org.tokens["ORGANIZATION_OWNER"])
    resp = await client.post("/api/owner/users", json={
        "email": "sneaky@test.com", "name": "Sam", "roleName": "Other Private",
    })
    assert resp.status_code == 404
    assert resp.json() == {"error": "Role not found"}

    resp = await client.patch(f"/api/owner/users/{org.employee.id}/role", json={"roleName": "Other Private"})
    assert resp.status_code == 404
    cook = next(u for u in (await client.get("/api/owner/users")).json()["users"] if u["email"] == "cook@test.com")
    assert cook["roles"] == ["EMPLOYEE"]


async def test_change_user_role(login, org, other_org):
    client = login(org.tokens["ORGANIZATION_OWNER"])
    resp = await client.patch(f"/api/owner/users/{org.employee.id}/role", json={"roleName": "POINT_MANAGER"})
    assert resp.status_code == 200
    assert resp.json()["user"]["roles"] == ["POINT_MANAGER"]

    employee = login(org.tokens["EMPLOYEE"])
    assert (await employee.get("/api/auth/me")).json()["role"] == "POINT_MANAGER"

    client = login(org.tokens["ORGANIZATION_OWNER"])
    resp = await client.patch(f"/api/owner/users/{other_org.employee.id}/role", json={"roleName": "MANAGER"})
    assert resp.status_code == 404


async def test_platform_owner_manages_global_roles(login, org, session_factory):
    async with session_factory() as db:
        _, root = await signup(db, "root@platform.com", "rootpass123")
        root.is_platform_owner = True
        await db.commit()
        token = await create_session(root, db)

    client = login(token)
    employee_role = await _role_id(client, "EMPLOYEE")
    resp = await client.put(f"/api/owner/roles/{employee_role}", json={"name": "STAFF"})
    assert resp.status_code == 400

    resp = await client.put(f"/api/owner/roles/{employee_role}/permissions", json={
        "permissions": {"modules": {"haccp": True, "learning": True}},
    })
    assert resp.status_code == 200

    resp = await client.delete(f"/api/owner/roles/{employee_role}")
    assert resp.status_code == 400

    users = (await client.get("/api/owner/users")).json()["users"]
    assert "cook@test.com" in {u["email"] for u in users}


# ── Page access ───────────────────────────────────────────

async def test_page_access_matrix_and_update(login, org):
    client = login(org.tokens["ORGANIZATION_OWNER"])
    matrix = (await client.get("/api/roles/pages")).json()["matrix"]
    assert matrix["EMPLOYEE"]["/haccp"] is False
    assert matrix["ORGANIZATION_OWNER"]["/haccp"] is True

    resp = await client.post("/api/roles/pages", json={"entries": [
        {"role": "EMPLOYEE", "pageSlug": "/haccp", "allowed": True},
        {"role": "EMPLOYEE", "pageSlug": "/learning", "allowed": True},
    ]})
    assert resp.json() == {"ok": True}

    items = (await client.get("/api/roles/pages", params={"role": "EMPLOYEE"})).json()["items"]
    allowed = [i["slug"] for i in items if i["allowed"]]
    assert allowed == ["/learning", "/haccp"]

    employee = login(org.tokens["EMPLOYEE"])
    menu = (await employee.get("/api/auth/me")).json()["menu"]
    assert [m["slug"] for m in menu] == ["/learning", "/haccp"]


async def test_page_access_rejects_hiding_system_page(login, org):
    client = login(org.tokens["ORGANIZATION_OWNER"])
    resp = await client.post("/api/roles/pages", json={"entries": [
        {"role": "ORGANIZATION_OWNER", "pageSlug": "/owner", "allowed": False},
    ]})
    assert resp.status_code == 400
    resp = await client.post("/api/roles/pages", json={"entries": [
        {"role": "EMPLOYEE", "pageSlug": "/casino", "allowed": True},
    ]})
    assert resp.status_code == 400


async def test_page_access_is_owner_only(login, org):
    client = login(org.tokens["MANAGER"])
    assert (await client.get("/api/roles/pages")).status_code == 403

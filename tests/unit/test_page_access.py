import pytest
import pytest_asyncio

from horeca.models import Tenant
from horeca.services.page_access import (
    MENU,
    get_allowed_slugs,
    get_matrix,
    get_menu_for,
    is_system_page,
    set_page_access,
)


@pytest_asyncio.fixture
async def tenant(db):
    t = Tenant(name="Menu Co", slug="menu-co")
    db.add(t)
    await db.commit()
    return t


def test_system_pages():
    assert is_system_page("/owner")
    assert is_system_page("/owner/users")
    assert not is_system_page("/haccp")


async def test_defaults_only_owners_see_pages(db, tenant):
    assert await get_allowed_slugs(db, tenant.id, "EMPLOYEE") == []
    owner_slugs = await get_allowed_slugs(db, tenant.id, "ORGANIZATION_OWNER")
    assert owner_slugs == [item.slug for item in MENU]


async def test_explicit_rows_override_defaults(db, tenant):
    await set_page_access(db, tenant.id, [("EMPLOYEE", "/haccp", True), ("ORGANIZATION_OWNER", "/billing", False)])

    assert await get_allowed_slugs(db, tenant.id, "EMPLOYEE") == ["/haccp"]
    assert await get_allowed_slugs(db, tenant.id, "сотрудник") == ["/haccp"]
    assert "/billing" not in await get_allowed_slugs(db, tenant.id, "ORGANIZATION_OWNER")

    await set_page_access(db, tenant.id, [("EMPLOYEE", "/haccp", False)])
    assert await get_allowed_slugs(db, tenant.id, "EMPLOYEE") == []


async def test_system_page_cannot_be_hidden_from_owner(db, tenant):
    with pytest.raises(ValueError):
        await set_page_access(db, tenant.id, [("ORGANIZATION_OWNER", "/owner", False)])


async def test_unknown_page_rejected_before_any_write(db, tenant):
    with pytest.raises(ValueError):
        await set_page_access(db, tenant.id, [("EMPLOYEE", "/haccp", True), ("EMPLOYEE", "/nowhere", True)])
    assert await get_allowed_slugs(db, tenant.id, "EMPLOYEE") == []


async def test_menu_union_of_roles(db, tenant):
    await set_page_access(db, tenant.id, [("EMPLOYEE", "/haccp", True), ("POINT_MANAGER", "/equipment", True)])
    menu = await get_menu_for(db, tenant.id, ["EMPLOYEE", "POINT_MANAGER"])
    assert [m.slug for m in menu] == ["/haccp", "/equipment"]

    owner_menu = await get_menu_for(db, tenant.id, ["EMPLOYEE", "OWNER"])
    assert len(owner_menu) == len(MENU)


async def test_matrix_fills_defaults(db, tenant):
    await set_page_access(db, tenant.id, [("MANAGER", "/files", True)])
    matrix = await get_matrix(db, tenant.id, ["MANAGER", "ORGANIZATION_OWNER"])
    assert matrix["MANAGER"]["/files"] is True
    assert matrix["MANAGER"]["/haccp"] is False
    assert all(matrix["ORGANIZATION_OWNER"].values())

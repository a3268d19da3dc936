"""Per-tenant page access matrix on top of the static menu.

Each (tenant, role, page) may carry an explicit allow/deny row. Without a row
only owner roles see a page. System pages can never be hidden from owners.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.models import RolePageAccess
from horeca.services.acl import CanonicalRole, has_role, normalize_role_name


@dataclass(frozen=True)
class MenuItem:
    slug: str
    label: str
    system: bool = False


MENU: tuple[MenuItem, ...] = (
    MenuItem("/dashboard", "Дашборд"),
    MenuItem("/labeling", "Маркировки"),
    MenuItem("/files", "Файлы"),
    MenuItem("/learning", "Обучение"),
    MenuItem("/haccp", "Журналы ХАССП"),
    MenuItem("/medical-books", "Медицинские книжки"),
    MenuItem("/schedule-salary", "График и зарплата"),
    MenuItem("/employees", "Мои сотрудники"),
    MenuItem("/equipment", "Мое оборудование"),
    MenuItem("/billing", "Биллинг"),
    MenuItem("/owner", "Владение", system=True),
    MenuItem("/owner/users", "Пользователи", system=True),
    MenuItem("/partner", "Партнёры"),
    MenuItem("/partner/points", "Мои точки"),
)

MENU_SLUGS = {item.slug for item in MENU}


def is_owner_role(role: str | CanonicalRole | None) -> bool:
    return has_role(role, CanonicalRole.ORGANIZATION_OWNER)


def is_system_page(slug: str) -> bool:
    return any(item.slug == slug and item.system for item in MENU)


def default_allowed(role: str | CanonicalRole | None, slug: str) -> bool:
    return is_owner_role(role)


def _role_key(role: str | CanonicalRole) -> str:
    canonical = role if isinstance(role, CanonicalRole) else normalize_role_name(role)
    return canonical.value if canonical else str(role)


async def get_role_page_map(db: AsyncSession, tenant_id: str, role: str | CanonicalRole) -> dict[str, bool]:
    result = await db.execute(
        select(RolePageAccess).where(
            RolePageAccess.tenant_id == tenant_id,
            RolePageAccess.role == _role_key(role),
        )
    )
    return {row.page_slug: row.allowed for row in result.scalars().all()}


async def get_allowed_slugs(db: AsyncSession, tenant_id: str, role: str | CanonicalRole) -> list[str]:
    page_map = await get_role_page_map(db, tenant_id, role)
    allowed = []
    for item in MENU:
        if is_owner_role(role) and item.system:
            allowed.append(item.slug)
        elif page_map.get(item.slug, default_allowed(role, item.slug)):
            allowed.append(item.slug)
    return allowed


async def get_menu_for(db: AsyncSession, tenant_id: str, roles: list[str | CanonicalRole]) -> list[MenuItem]:
    """Menu entries visible to a user holding any of ``roles``."""
    if any(is_owner_role(r) for r in roles):
        return list(MENU)
    visible: set[str] = set()
    for role in roles:
        visible.update(await get_allowed_slugs(db, tenant_id, role))
    return [item for item in MENU if item.slug in visible]


async def get_matrix(db: AsyncSession, tenant_id: str, roles: list[str]) -> dict[str, dict[str, bool]]:
    """role -> slug -> allowed, with defaults filled in."""
    matrix: dict[str, dict[str, bool]] = {}
    for role in roles:
        page_map = await get_role_page_map(db, tenant_id, role)
        matrix[_role_key(role)] = {
            item.slug: page_map.get(item.slug, default_allowed(role, item.slug))
            for item in MENU
        }
    return matrix


async def set_page_access(
    db: AsyncSession, tenant_id: str, updates: list[tuple[str, str, bool]],
) -> None:
    """Upsert (role, slug, allowed) rows in one transaction.

    Raises ValueError for unknown pages or for hiding a system page from an owner role.
    """
    for role, slug, allowed in updates:
        if slug not in MENU_SLUGS:
            raise ValueError(f"Unknown page: {slug}")
        if not allowed and is_system_page(slug) and is_owner_role(role):
            raise ValueError(f"System page {slug} cannot be disabled for {role}")

    for role, slug, allowed in updates:
        key = _role_key(role)
        result = await db.execute(
            select(RolePageAccess).where(
                RolePageAccess.tenant_id == tenant_id,
                RolePageAccess.role == key,
                RolePageAccess.page_slug == slug,
            )
        )
        row = result.scalars().first()
        if row:
            row.allowed = allowed
        else:
            db.add(RolePageAccess(tenant_id=tenant_id, role=key, page_slug=slug, allowed=allowed))
    await db.commit()

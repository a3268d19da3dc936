"""Bootstrap a new tenant: organization row, owner user, role, subscription."""

from __future__ import annotations

import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db import crud
from horeca.models import Tenant, User, Point, Subscription
from horeca.services.acl import CanonicalRole
from horeca.services.auth import hash_password, generate_password


class EmailTakenError(Exception):
    pass


def _slugify(name: str) -> str:
    """Convert an organization name to a URL-safe slug."""
    slug = name.lower().strip()
    slug = re.sub(r'[^a-z0-9]+', '-', slug)
    slug = slug.strip('-')
    return slug or "org"


async def _unique_slug(db: AsyncSession, name: str) -> str:
    slug = _slugify(name)
    result = await db.execute(select(Tenant).where(Tenant.slug == slug))
    existing = result.scalars().first()
    if existing:
        slug = f"{slug}-{existing.id[-6:].lower()}"
    return slug


async def create_tenant(
    db: AsyncSession,
    name: str,
    owner_email: str,
    owner_password: str,
    owner_name: str = "",
    platform_owner: bool = False,
) -> tuple[Tenant, User]:
    """Create tenant + organization owner + trial subscription in one transaction.

    Returns (tenant, owner).
    """
    email = owner_email.strip().lower()
    if await crud.get_user_by_email(db, email):
        raise EmailTakenError(email)

    tenant = Tenant(name=name, slug=await _unique_slug(db, name))
    db.add(tenant)
    await db.flush()

    owner = User(
        tenant_id=tenant.id,
        email=email,
        name=owner_name or email.split("@")[0],
        password_hash=hash_password(owner_password),
        is_platform_owner=platform_owner,
    )
    db.add(owner)
    await db.flush()

    await crud.assign_role(db, owner, CanonicalRole.ORGANIZATION_OWNER.value, tenant.id)
    db.add(Subscription(tenant_id=tenant.id))
    await db.commit()
    await db.refresh(tenant)
    await db.refresh(owner)
    return tenant, owner


async def signup(db: AsyncSession, email: str, password: str, name: str | None = None) -> tuple[Tenant, User]:
    """Self-service registration. The very first account becomes platform owner."""
    first_user = await crud.count_users(db) == 0
    local = email.split("@")[0]
    return await create_tenant(
        db,
        name=f"{local}-org",
        owner_email=email,
        owner_password=password,
        owner_name=name or local,
        platform_owner=first_user,
    )


async def create_point_with_user(
    db: AsyncSession, tenant_id: str, name: str, address: str = "",
) -> tuple[Point, User, str]:
    """Create a point and its dedicated POINT_MANAGER login in one transaction.

    Returns (point, point_user, plain_password); the password is shown once.
    """
    point = Point(tenant_id=tenant_id, name=name, address=address)
    db.add(point)
    await db.flush()

    password = generate_password()
    user = User(
        tenant_id=tenant_id,
        point_id=point.id,
        email=f"point_{point.id[-8:].lower()}@point.local",
        name=name,
        password_hash=hash_password(password),
    )
    db.add(user)
    await db.flush()
    await crud.assign_role(db, user, CanonicalRole.POINT_MANAGER.value, tenant_id)
    await db.commit()
    await db.refresh(point)
    await db.refresh(user)
    return point, user, password


async def create_member(
    db: AsyncSession, tenant_id: str | None, email: str, name: str,
    role_name: str, point_id: str | None = None, **profile,
) -> tuple[User, str]:
    """Create a user with a generated temporary password and one role."""
    email = email.strip().lower()
    if await crud.get_user_by_email(db, email):
        raise EmailTakenError(email)
    password = generate_password()
    user = User(
        tenant_id=tenant_id,
        point_id=point_id,
        email=email,
        name=name,
        password_hash=hash_password(password),
        **profile,
    )
    db.add(user)
    await db.flush()
    await crud.assign_role(db, user, role_name, tenant_id)
    await db.commit()
    await db.refresh(user)
    return user, password

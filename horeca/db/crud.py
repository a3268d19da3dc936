"""CRUD operations shared by the API routers, services and CLI."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.models import (
    Tenant, Point, User, Role, UserRole, EmployeeStatus, Equipment,
    TemperatureRecord, Subscription,
)
from horeca.models.equipment import PERIOD_TIMES
from horeca.services.acl import CanonicalRole, normalize_role_name


# ── Tenants + points ──────────────────────────────────────

async def get_tenant(db: AsyncSession, tenant_id: str) -> Tenant | None:
    return await db.get(Tenant, tenant_id)


async def get_tenant_by_slug(db: AsyncSession, slug: str) -> Tenant | None:
    result = await db.execute(select(Tenant).where(Tenant.slug == slug))
    return result.scalars().first()


async def create_point(db: AsyncSession, tenant_id: str, name: str, address: str = "") -> Point:
    point = Point(tenant_id=tenant_id, name=name, address=address)
    db.add(point)
    await db.commit()
    await db.refresh(point)
    return point


async def list_points_with_user_counts(db: AsyncSession, tenant_id: str) -> list[tuple[Point, int]]:
    user_count = (
        select(func.count(User.id))
        .where(User.point_id == Point.id)
        .correlate(Point)
        .scalar_subquery()
    )
    result = await db.execute(
        select(Point, user_count)
        .where(Point.tenant_id == tenant_id)
        .order_by(Point.created_at)
    )
    return [(p, n) for p, n in result.all()]


async def count_point_users(db: AsyncSession, point_id: str) -> int:
    return await db.scalar(select(func.count(User.id)).where(User.point_id == point_id))


# ── Users ─────────────────────────────────────────────────

async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalars().first()


async def count_users(db: AsyncSession) -> int:
    return await db.scalar(select(func.count(User.id)))


# ── Roles ─────────────────────────────────────────────────

async def get_role(db: AsyncSession, role_id: str) -> Role | None:
    return await db.get(Role, role_id)


async def get_role_by_name(db: AsyncSession, name: str) -> Role | None:
    result = await db.execute(select(Role).where(Role.name == name))
    return result.scalars().first()


async def get_tenant_role_by_name(db: AsyncSession, name: str, tenant_id: str | None) -> Role | None:
    """A role by name, limited to global roles and the given tenant's own."""
    result = await db.execute(
        select(Role).where(
            Role.name == name,
            or_(Role.tenant_id.is_(None), Role.tenant_id == tenant_id),
        )
    )
    return result.scalars().first()


async def ensure_role(db: AsyncSession, name: str, description: str = "") -> Role:
    """Get or create a global role by name. Flushes but does not commit."""
    role = await get_role_by_name(db, name)
    if role:
        return role
    role = Role(name=name, description=description)
    db.add(role)
    await db.flush()
    return role


async def seed_canonical_roles(db: AsyncSession) -> list[Role]:
    roles = [await ensure_role(db, r.value) for r in CanonicalRole]
    await db.commit()
    return roles


async def assign_role(db: AsyncSession, user: User, role_name: str, tenant_id: str | None) -> UserRole:
    """Attach a role to a user within a tenant. Flushes but does not commit."""
    role = await ensure_role(db, role_name)
    link = UserRole(user_id=user.id, role_id=role.id, tenant_id=tenant_id)
    db.add(link)
    await db.flush()
    return link


async def replace_user_roles(db: AsyncSession, user: User, role: Role, tenant_id: str | None) -> None:
    result = await db.execute(
        select(UserRole).where(UserRole.user_id == user.id, UserRole.tenant_id == tenant_id)
    )
    for link in result.scalars().all():
        await db.delete(link)
    await db.flush()
    db.add(UserRole(user_id=user.id, role_id=role.id, tenant_id=tenant_id))
    await db.commit()


async def count_role_users(db: AsyncSession, role_id: str) -> int:
    return await db.scalar(select(func.count(UserRole.id)).where(UserRole.role_id == role_id))


# ── Employee status ───────────────────────────────────────

async def list_employee_statuses(
    db: AsyncSession, tenant_id: str, point_id: str | None = None,
    on_date: dt.date | None = None, employee_id: str | None = None,
) -> list[EmployeeStatus]:
    stmt = (
        select(EmployeeStatus)
        .join(User, User.id == EmployeeStatus.employee_id)
        .where(EmployeeStatus.tenant_id == tenant_id)
        .order_by(EmployeeStatus.date.desc(), User.name)
    )
    if point_id:
        stmt = stmt.where(EmployeeStatus.point_id == point_id)
    if on_date:
        stmt = stmt.where(EmployeeStatus.date == on_date)
    if employee_id:
        stmt = stmt.where(EmployeeStatus.employee_id == employee_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def upsert_employee_status(
    db: AsyncSession, employee: User, on_date: dt.date, status: str,
    notes: str = "", updated_by: str = "",
) -> EmployeeStatus:
    """One row per employee per day: update it when present, else create it."""
    result = await db.execute(
        select(EmployeeStatus).where(
            EmployeeStatus.employee_id == employee.id,
            EmployeeStatus.date == on_date,
        )
    )
    row = result.scalars().first()
    if row:
        row.status = status
        row.notes = notes
        row.updated_by = updated_by
    else:
        row = EmployeeStatus(
            tenant_id=employee.tenant_id,
            point_id=employee.point_id,
            employee_id=employee.id,
            date=on_date,
            status=status,
            notes=notes,
            updated_by=updated_by,
        )
        db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


# ── Equipment + temperature ───────────────────────────────

async def create_equipment(db: AsyncSession, tenant_id: str, point_id: str | None, **fields) -> Equipment:
    eq = Equipment(tenant_id=tenant_id, point_id=point_id, **fields)
    db.add(eq)
    await db.commit()
    await db.refresh(eq)
    return eq


async def update_equipment(db: AsyncSession, eq: Equipment, **kwargs) -> Equipment:
    for k, v in kwargs.items():
        if v is not None:
            setattr(eq, k, v)
    await db.commit()
    await db.refresh(eq)
    return eq


async def upsert_temperature_record(
    db: AsyncSession, equipment: Equipment, on_date: dt.date, temperature: float,
    period: str | None = None, time: str | None = None, notes: str = "", recorded_by: str = "",
) -> TemperatureRecord:
    """One reading per equipment, day and period.

    A named period pins the time of day; without one the reading counts as
    morning and keeps the caller's time.
    """
    time = PERIOD_TIMES.get(period or "") or time or PERIOD_TIMES["morning"]
    period = period or "morning"
    result = await db.execute(
        select(TemperatureRecord).where(
            TemperatureRecord.equipment_id == equipment.id,
            TemperatureRecord.date == on_date,
            TemperatureRecord.period == period,
        )
    )
    row = result.scalars().first()
    if row:
        row.temperature = temperature
        row.time = time
        row.notes = notes
        row.recorded_by = recorded_by
    else:
        row = TemperatureRecord(
            tenant_id=equipment.tenant_id,
            point_id=equipment.point_id,
            equipment_id=equipment.id,
            date=on_date,
            period=period,
            time=time,
            temperature=temperature,
            notes=notes,
            recorded_by=recorded_by,
        )
        db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


# ── Subscription ──────────────────────────────────────────

async def get_subscription(db: AsyncSession, tenant_id: str) -> Subscription | None:
    result = await db.execute(select(Subscription).where(Subscription.tenant_id == tenant_id))
    return result.scalars().first()


async def upsert_subscription(db: AsyncSession, tenant_id: str, **fields) -> Subscription:
    sub = await get_subscription(db, tenant_id)
    if sub:
        for k, v in fields.items():
            setattr(sub, k, v)
    else:
        sub = Subscription(tenant_id=tenant_id, **fields)
        db.add(sub)
    await db.commit()
    await db.refresh(sub)
    return sub


# ── Staff ─────────────────────────────────────────────────

_STAFF_ROLES = (CanonicalRole.POINT_MANAGER, CanonicalRole.EMPLOYEE)


async def list_staff(
    db: AsyncSession, tenant_id: str, point_id: str | None = None,
) -> list[tuple[User, CanonicalRole]]:
    """Users of a tenant (or one point) holding a point-level role, sorted by name."""
    stmt = (
        select(User, Role.name)
        .join(UserRole, UserRole.user_id == User.id)
        .join(Role, Role.id == UserRole.role_id)
        .where(User.tenant_id == tenant_id, UserRole.tenant_id == tenant_id)
        .order_by(User.name, UserRole.created_at)
    )
    if point_id:
        stmt = stmt.where(User.point_id == point_id)
    result = await db.execute(stmt)

    staff: dict[str, tuple[User, CanonicalRole]] = {}
    for user, role_name in result.all():
        role = normalize_role_name(role_name)
        if user.id not in staff and role in _STAFF_ROLES:
            staff[user.id] = (user, role)
    return list(staff.values())

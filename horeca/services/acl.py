"""Role resolution and the role hierarchy.

Five canonical roles ordered by rank:

    PLATFORM_OWNER > ORGANIZATION_OWNER > MANAGER > POINT_MANAGER > EMPLOYEE

Stored role names may use older spellings (OWNER, PARTNER, POINT, PERSONAL,
their Russian equivalents); they are folded into the canonical set here.
"""

from __future__ import annotations

import enum
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.config import get_settings
from horeca.models import User, Role, UserRole, Point, Course, Quiz, Lesson, Assignment

logger = logging.getLogger(__name__)


class CanonicalRole(str, enum.Enum):
    PLATFORM_OWNER = "PLATFORM_OWNER"
    ORGANIZATION_OWNER = "ORGANIZATION_OWNER"
    MANAGER = "MANAGER"
    POINT_MANAGER = "POINT_MANAGER"
    EMPLOYEE = "EMPLOYEE"


ROLE_RANK: dict[CanonicalRole, int] = {
    CanonicalRole.PLATFORM_OWNER: 5,
    CanonicalRole.ORGANIZATION_OWNER: 4,
    CanonicalRole.MANAGER: 3,
    CanonicalRole.POINT_MANAGER: 2,
    CanonicalRole.EMPLOYEE: 1,
}

# Upper-cased stored name -> canonical role
_ROLE_ALIASES: dict[str, CanonicalRole] = {
    "PLATFORM_OWNER": CanonicalRole.PLATFORM_OWNER,
    "ORGANIZATION_OWNER": CanonicalRole.ORGANIZATION_OWNER,
    "OWNER": CanonicalRole.ORGANIZATION_OWNER,
    "ВЛАДЕЛЕЦ": CanonicalRole.ORGANIZATION_OWNER,
    "MANAGER": CanonicalRole.MANAGER,
    "PARTNER": CanonicalRole.MANAGER,
    "ПАРТНЕР": CanonicalRole.MANAGER,
    "ADMIN": CanonicalRole.MANAGER,
    "POINT_MANAGER": CanonicalRole.POINT_MANAGER,
    "POINT": CanonicalRole.POINT_MANAGER,
    "ТОЧКА": CanonicalRole.POINT_MANAGER,
    "EMPLOYEE": CanonicalRole.EMPLOYEE,
    "PERSONAL": CanonicalRole.EMPLOYEE,
    "ПЕРСОНАЛЬНЫЙ": CanonicalRole.EMPLOYEE,
    "СОТРУДНИК": CanonicalRole.EMPLOYEE,
}


def normalize_role_name(name: str | None) -> CanonicalRole | None:
    """Map a stored role name (any casing, legacy or Russian) to a canonical role."""
    if not name:
        return None
    return _ROLE_ALIASES.get(name.strip().upper())


def role_rank(role: CanonicalRole | str | None) -> int:
    if role is None:
        return 0
    if not isinstance(role, CanonicalRole):
        role = normalize_role_name(role)
    return ROLE_RANK.get(role, 0) if role else 0


def has_role(actual: CanonicalRole | str | None, needed: CanonicalRole | str) -> bool:
    """True iff ``actual`` ranks at or above ``needed``. No role never passes."""
    if actual is None:
        return False
    actual_rank = role_rank(actual)
    return actual_rank > 0 and actual_rank >= role_rank(needed)


async def get_assigned_role(
    db: AsyncSession, user_id: str, tenant_id: str | None = None,
) -> Role | None:
    """First Role row assigned to the user, oldest assignment first."""
    stmt = (
        select(Role)
        .join(UserRole, UserRole.role_id == Role.id)
        .where(UserRole.user_id == user_id)
    )
    if tenant_id:
        stmt = stmt.where(UserRole.tenant_id == tenant_id)
    result = await db.execute(stmt.order_by(UserRole.created_at).limit(1))
    return result.scalars().first()


async def get_user_role(
    db: AsyncSession, user_id: str, tenant_id: str | None = None,
) -> CanonicalRole | None:
    """Resolve a user's canonical role, optionally within one tenant.

    Returns None for an unknown user or an unmappable role name.
    """
    user = await db.get(User, user_id)
    if not user:
        return None
    if user.is_platform_owner:
        return CanonicalRole.PLATFORM_OWNER

    role = await get_assigned_role(db, user_id, tenant_id)
    if not role:
        logger.info(f"No role assignment for user {user_id} in tenant {tenant_id}")
        return None
    canonical = normalize_role_name(role.name) or normalize_role_name(role.inherits_from)
    if canonical is None:
        logger.info(f"Role '{role.name}' of user {user_id} has no canonical mapping")
    return canonical


async def get_user_role_ids(db: AsyncSession, user_id: str, tenant_id: str | None = None) -> list[str]:
    stmt = select(UserRole.role_id).where(UserRole.user_id == user_id)
    if tenant_id:
        stmt = stmt.where(UserRole.tenant_id == tenant_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_user_role_names(db: AsyncSession, user_id: str, tenant_id: str | None = None) -> list[str]:
    stmt = (
        select(Role.name)
        .join(UserRole, UserRole.role_id == Role.id)
        .where(UserRole.user_id == user_id)
    )
    if tenant_id:
        stmt = stmt.where(UserRole.tenant_id == tenant_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


# ── Points ────────────────────────────────────────────────

async def get_partner_points(db: AsyncSession, user_id: str) -> list[Point]:
    """Active points of the user's tenant."""
    user = await db.get(User, user_id)
    if not user or not user.tenant_id:
        return []
    result = await db.execute(
        select(Point)
        .where(Point.tenant_id == user.tenant_id, Point.is_active.is_(True))
        .order_by(Point.name)
    )
    return list(result.scalars().all())


async def get_current_point(db: AsyncSession, user_id: str) -> Point | None:
    user = await db.get(User, user_id)
    if not user or not user.point_id:
        return None
    return await db.get(Point, user.point_id)


# ── Learning helpers ──────────────────────────────────────

def is_sandbox(tenant_id: str | None) -> bool:
    """Users without an organization author in a personal sandbox."""
    return not tenant_id


def can_author(role: CanonicalRole | None) -> bool:
    return has_role(role, CanonicalRole.MANAGER)


async def check_sandbox_limits(
    db: AsyncSession, user_id: str, action: str, course_id: str | None = None,
) -> tuple[bool, str]:
    """Enforce the per-user quotas that apply to sandbox authors."""
    limits = get_settings().sandbox

    if action == "course":
        count = await db.scalar(
            select(func.count(Course.id)).where(Course.owner_id == user_id, Course.tenant_id.is_(None))
        )
        if count >= limits.max_courses:
            return False, f"Sandbox limit reached: at most {limits.max_courses} course(s)"
    elif action == "lesson":
        count = await db.scalar(select(func.count(Lesson.id)).where(Lesson.course_id == course_id))
        if count >= limits.max_lessons_per_course:
            return False, f"Sandbox limit reached: at most {limits.max_lessons_per_course} lessons per course"
    elif action == "quiz":
        count = await db.scalar(
            select(func.count(Quiz.id))
            .join(Course, Course.id == Quiz.course_id)
            .where(Course.owner_id == user_id, Course.tenant_id.is_(None))
        )
        if count >= limits.max_quizzes:
            return False, f"Sandbox limit reached: at most {limits.max_quizzes} quiz(zes)"
    elif action == "assignment":
        count = await db.scalar(
            select(func.count(Assignment.id)).where(
                Assignment.assigned_by == user_id, Assignment.tenant_id.is_(None),
            )
        )
        if count >= limits.max_assignments:
            return False, f"Sandbox limit reached: at most {limits.max_assignments} assignments"
    else:
        raise ValueError(f"Unknown sandbox action: {action}")
    return True, ""

"""Tenant + point scoping of queries.

Every journal row carries tenant_id and, where it applies, point_id. Users
ranked below ORGANIZATION_OWNER who are attached to a point only ever see that
point's rows; owners see the whole tenant.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.models import Point
from horeca.services.acl import CanonicalRole, has_role
from horeca.services.auth import AuthContext


@dataclass
class Scope:
    tenant_id: str
    point_id: str | None
    user_id: str
    role: CanonicalRole | None

    @property
    def is_owner(self) -> bool:
        return has_role(self.role, CanonicalRole.ORGANIZATION_OWNER)


def scope_for(auth: AuthContext) -> Scope:
    """Derive the query scope of an authenticated user. Raises 400 without a tenant."""
    if not auth.tenant_id:
        raise HTTPException(400, "No tenant found")
    point_id = None
    if auth.point_id and not has_role(auth.role, CanonicalRole.ORGANIZATION_OWNER):
        point_id = auth.point_id
    return Scope(tenant_id=auth.tenant_id, point_id=point_id, user_id=auth.user_id, role=auth.role)


def scope_filter(stmt: Select, model, scope: Scope) -> Select:
    stmt = stmt.where(model.tenant_id == scope.tenant_id)
    if scope.point_id and hasattr(model, "point_id"):
        stmt = stmt.where(model.point_id == scope.point_id)
    return stmt


async def get_scoped(db: AsyncSession, model, obj_id: str, scope: Scope):
    """Load one row by id, or None when it is missing or outside the scope."""
    stmt = scope_filter(select(model).where(model.id == obj_id), model, scope)
    result = await db.execute(stmt)
    return result.scalars().first()


async def resolve_point(db: AsyncSession, scope: Scope, requested: str | None) -> str | None:
    """Point a new record is written to.

    Point-bound users always write to their own point. Owners may target any
    point of the tenant; an unknown point is a 404.
    """
    if scope.point_id:
        return scope.point_id
    if not requested:
        return None
    point = await db.get(Point, requested)
    if not point or point.tenant_id != scope.tenant_id:
        raise HTTPException(404, "Point not found")
    return point.id

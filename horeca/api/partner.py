"""Partner API: points (physical locations) of the caller's organization."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db import crud
from horeca.db.engine import get_db
from horeca.dependencies import require_role, require_permission
from horeca.models import Point
from horeca.schemas import PointCreate, PointRead, PointUpdate
from horeca.services.acl import CanonicalRole
from horeca.services.auth import AuthContext
from horeca.services.scope import scope_for
from horeca.services.tenant_bootstrap import create_point_with_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/partner/points", tags=["partner"])

_view_dep = require_role(CanonicalRole.MANAGER)
_create_dep = require_permission("points", "createPoints")
_edit_dep = require_permission("points", "editPoints")
_delete_dep = require_permission("points", "deletePoints")


def _point_out(point: Point, user_count: int = 0) -> dict:
    return PointRead(
        id=point.id,
        name=point.name,
        address=point.address or "",
        is_active=point.is_active,
        user_count=user_count,
        created_at=point.created_at,
        updated_at=point.updated_at,
    ).model_dump(by_alias=True, mode="json")


async def _tenant_point(db: AsyncSession, point_id: str, tenant_id: str) -> Point:
    point = await db.get(Point, point_id)
    if not point or point.tenant_id != tenant_id:
        raise HTTPException(404, "Point not found")
    return point


@router.get("")
async def list_points(
    auth: AuthContext = Depends(_view_dep),
    db: AsyncSession = Depends(get_db),
):
    scope = scope_for(auth)
    rows = await crud.list_points_with_user_counts(db, scope.tenant_id)
    return {"points": [_point_out(p, n) for p, n in rows]}


@router.post("", status_code=201)
async def create_point(
    body: PointCreate,
    auth: AuthContext = Depends(_create_dep),
    db: AsyncSession = Depends(get_db),
):
    scope = scope_for(auth)
    point, user, password = await create_point_with_user(db, scope.tenant_id, body.name.strip(), body.address)
    logger.info(f"Point {point.id} created in tenant {scope.tenant_id} with login {user.email}")
    return {
        "point": _point_out(point, 1),
        "credentials": {"login": user.email, "email": user.email, "password": password},
    }


@router.put("/{point_id}")
async def update_point(
    point_id: str,
    body: PointUpdate,
    auth: AuthContext = Depends(_edit_dep),
    db: AsyncSession = Depends(get_db),
):
    scope = scope_for(auth)
    point = await _tenant_point(db, point_id, scope.tenant_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(point, key, value)
    await db.commit()
    await db.refresh(point)
    return {"point": _point_out(point, await crud.count_point_users(db, point.id))}


@router.delete("/{point_id}")
async def delete_point(
    point_id: str,
    auth: AuthContext = Depends(_delete_dep),
    db: AsyncSession = Depends(get_db),
):
    scope = scope_for(auth)
    point = await _tenant_point(db, point_id, scope.tenant_id)

    users = await crud.count_point_users(db, point.id)
    if users > 0:
        point.is_active = False
        await db.commit()
        await db.refresh(point)
        return {"deleted": False, "deactivated": True, "point": _point_out(point, users)}

    await db.delete(point)
    await db.commit()
    return {"deleted": True, "deactivated": False}

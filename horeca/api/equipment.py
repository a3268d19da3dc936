"""Equipment API: refrigerators, freezers and other monitored units."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db import crud
from horeca.db.engine import get_db
from horeca.dependencies import require_scope
from horeca.models import Equipment, TemperatureRecord
from horeca.schemas import EquipmentCreate, EquipmentUpdate, EquipmentRead
from horeca.services.acl import CanonicalRole
from horeca.services.scope import Scope, scope_filter, get_scoped, resolve_point

router = APIRouter(prefix="/api/equipment", tags=["equipment"])

_scope_dep = require_scope(CanonicalRole.POINT_MANAGER)


@router.get("")
async def list_equipment(
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        scope_filter(select(Equipment), Equipment, scope).order_by(Equipment.created_at.desc())
    )
    items = [EquipmentRead.model_validate(e).model_dump(by_alias=True, mode="json") for e in result.scalars().all()]
    return {"equipment": items}


@router.post("", status_code=201)
async def create_equipment(
    body: EquipmentCreate,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    point_id = await resolve_point(db, scope, body.point_id)
    eq = await crud.create_equipment(
        db, scope.tenant_id, point_id,
        **body.model_dump(exclude={"point_id"}),
    )
    return {"equipment": EquipmentRead.model_validate(eq).model_dump(by_alias=True, mode="json")}


@router.put("/{equipment_id}")
async def update_equipment(
    equipment_id: str,
    body: EquipmentUpdate,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    eq = await get_scoped(db, Equipment, equipment_id, scope)
    if not eq:
        raise HTTPException(404, "Equipment not found")
    eq = await crud.update_equipment(db, eq, **body.model_dump(exclude_unset=True))
    return {"equipment": EquipmentRead.model_validate(eq).model_dump(by_alias=True, mode="json")}


@router.delete("/{equipment_id}")
async def delete_equipment(
    equipment_id: str,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    eq = await get_scoped(db, Equipment, equipment_id, scope)
    if not eq:
        raise HTTPException(404, "Equipment not found")
    await db.execute(delete(TemperatureRecord).where(TemperatureRecord.equipment_id == eq.id))
    await db.delete(eq)
    await db.commit()
    return {"ok": True}

"""Temperature journal API: morning/evening readings per equipment unit."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db import crud
from horeca.db.engine import get_db
from horeca.dependencies import require_scope
from horeca.models import Equipment, TemperatureRecord
from horeca.schemas import TemperatureRecordCreate, TemperatureRecordRead
from horeca.services.acl import CanonicalRole
from horeca.services.scope import Scope, scope_filter, get_scoped

router = APIRouter(prefix="/api/temperature-records", tags=["temperature-records"])

_scope_dep = require_scope(CanonicalRole.POINT_MANAGER)


def _dump(rec: TemperatureRecord) -> dict:
    return TemperatureRecordRead.model_validate(rec).model_dump(by_alias=True, mode="json")


@router.get("")
async def list_temperature_records(
    date: dt.date | None = Query(default=None),
    equipment_id: str | None = Query(default=None, alias="equipmentId"),
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    stmt = scope_filter(select(TemperatureRecord), TemperatureRecord, scope)
    if date:
        stmt = stmt.where(TemperatureRecord.date == date)
    if equipment_id:
        stmt = stmt.where(TemperatureRecord.equipment_id == equipment_id)
    result = await db.execute(stmt.order_by(TemperatureRecord.created_at.desc()))
    return {"temperatureRecords": [_dump(r) for r in result.scalars().all()]}


@router.post("", status_code=201)
async def record_temperature(
    body: TemperatureRecordCreate,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    equipment = await get_scoped(db, Equipment, body.equipment_id, scope)
    if not equipment:
        raise HTTPException(404, "Equipment not found or access denied")

    actor = await crud.get_user(db, scope.user_id)
    rec = await crud.upsert_temperature_record(
        db, equipment, body.date, body.temperature,
        period=body.period,
        time=body.time,
        notes=body.notes,
        recorded_by=(actor.name or actor.email) if actor else "",
    )
    return {"temperatureRecord": _dump(rec)}

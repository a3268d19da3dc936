"""Health check journal: temperature and symptom checks at shift start."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db.engine import get_db
from horeca.dependencies import require_scope
from horeca.models import HealthRecord
from horeca.schemas import HealthRecordCreate, HealthRecordRead
from horeca.services.acl import CanonicalRole
from horeca.services.scope import Scope, scope_filter, resolve_point

router = APIRouter(prefix="/api/health-records", tags=["health-records"])

_read_dep = require_scope(CanonicalRole.EMPLOYEE)
_write_dep = require_scope(CanonicalRole.POINT_MANAGER)


@router.get("", response_model=list[HealthRecordRead])
async def list_health_records(
    date: dt.date | None = Query(default=None),
    scope: Scope = Depends(_read_dep),
    db: AsyncSession = Depends(get_db),
):
    stmt = scope_filter(select(HealthRecord), HealthRecord, scope)
    if date:
        stmt = stmt.where(HealthRecord.date == date)
    result = await db.execute(stmt.order_by(HealthRecord.date.desc(), HealthRecord.created_at.desc()))
    return list(result.scalars().all())


@router.post("", status_code=201, response_model=HealthRecordRead)
async def create_health_record(
    body: HealthRecordCreate,
    scope: Scope = Depends(_write_dep),
    db: AsyncSession = Depends(get_db),
):
    record = HealthRecord(
        tenant_id=scope.tenant_id,
        point_id=await resolve_point(db, scope, body.point_id),
        date=body.date or dt.date.today(),
        employee_name=body.employee_name,
        position=body.position,
        temperature=body.temperature,
        symptoms=body.symptoms,
        health_status=body.health_status,
        notes=body.notes,
        responsible=body.responsible,
        created_by=scope.user_id,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record

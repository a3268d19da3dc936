"""Employee status API: daily HACCP health journal, one row per employee per day."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db import crud
from horeca.db.engine import get_db
from horeca.dependencies import require_scope
from horeca.models import EmployeeStatus, Point, User
from horeca.schemas import EmployeeStatusCreate, EmployeeStatusRead
from horeca.services.acl import CanonicalRole
from horeca.services.scope import Scope

router = APIRouter(prefix="/api/employee-status", tags=["employee-status"])

_read_dep = require_scope(CanonicalRole.EMPLOYEE)
_write_dep = require_scope(CanonicalRole.POINT_MANAGER)


def _to_read(row: EmployeeStatus, employee: User, point: Point | None) -> EmployeeStatusRead:
    return EmployeeStatusRead(
        id=row.id,
        employee_id=row.employee_id,
        employee_name=employee.name or "Без имени",
        employee_email=employee.email,
        date=row.date,
        status=row.status,
        notes=row.notes or "",
        updated_by=row.updated_by or "",
        point_id=row.point_id,
        point_name=point.name if point else None,
    )


@router.get("", response_model=list[EmployeeStatusRead])
async def list_statuses(
    date: dt.date | None = Query(default=None),
    employee_id: str | None = Query(default=None, alias="employeeId"),
    scope: Scope = Depends(_read_dep),
    db: AsyncSession = Depends(get_db),
):
    rows = await crud.list_employee_statuses(
        db, scope.tenant_id, scope.point_id, on_date=date, employee_id=employee_id,
    )
    return [_to_read(r, r.employee, r.point) for r in rows]


@router.post("", status_code=201, response_model=EmployeeStatusRead)
async def upsert_status(
    body: EmployeeStatusCreate,
    scope: Scope = Depends(_write_dep),
    db: AsyncSession = Depends(get_db),
):
    employee = await crud.get_user(db, body.employee_id)
    if (
        not employee
        or employee.tenant_id != scope.tenant_id
        or (scope.point_id and employee.point_id != scope.point_id)
    ):
        raise HTTPException(404, "Employee not found or access denied")

    actor = await crud.get_user(db, scope.user_id)
    row = await crud.upsert_employee_status(
        db, employee, body.date, body.status,
        notes=body.notes,
        updated_by=(actor.name or actor.email) if actor else "",
    )
    point = await db.get(Point, row.point_id) if row.point_id else None
    return _to_read(row, employee, point)

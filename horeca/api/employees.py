"""Employees API: point staff listing and onboarding."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db import crud
from horeca.db.engine import get_db
from horeca.dependencies import require_scope
from horeca.models import User
from horeca.schemas import EmployeeCreate, EmployeeRead
from horeca.services.acl import CanonicalRole
from horeca.services.scope import Scope, resolve_point
from horeca.services.tenant_bootstrap import EmailTakenError, create_member

router = APIRouter(prefix="/api/employees", tags=["employees"])

_staff_dep = require_scope(CanonicalRole.POINT_MANAGER)


def _to_read(user: User, role: CanonicalRole | None) -> EmployeeRead:
    return EmployeeRead(
        id=user.id,
        name=user.name or "Без имени",
        email=user.email,
        position=user.position,
        phone=user.phone,
        role=role.value if role else None,
        point_id=user.point_id,
        point_name=user.point.name if user.point else None,
        is_active=user.is_active,
    )


@router.get("", response_model=list[EmployeeRead])
async def list_employees(
    scope: Scope = Depends(_staff_dep),
    db: AsyncSession = Depends(get_db),
):
    staff = await crud.list_staff(db, scope.tenant_id, scope.point_id)
    return [_to_read(user, role) for user, role in staff]


@router.post("", status_code=201)
async def create_employee(
    body: EmployeeCreate,
    scope: Scope = Depends(_staff_dep),
    db: AsyncSession = Depends(get_db),
):
    point_id = await resolve_point(db, scope, body.point_id)
    try:
        user, password = await create_member(
            db,
            tenant_id=scope.tenant_id,
            email=body.email,
            name=body.name,
            role_name=CanonicalRole.EMPLOYEE.value,
            point_id=point_id,
            position=body.position,
            phone=body.phone,
        )
    except EmailTakenError:
        raise HTTPException(409, "User with this email already exists")

    data = _to_read(user, CanonicalRole.EMPLOYEE).model_dump(by_alias=True)
    data["temporaryPassword"] = password
    return data

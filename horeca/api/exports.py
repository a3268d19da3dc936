"""Excel exports of the HACCP journals."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db.engine import get_db
from horeca.dependencies import require_scope
from horeca.schemas import DateRange
from horeca.services.acl import CanonicalRole
from horeca.services.export import XLSX_MIME, health_journal_xlsx, temperature_journal_xlsx
from horeca.services.scope import Scope

router = APIRouter(prefix="/api/export", tags=["export"])

_scope_dep = require_scope(CanonicalRole.POINT_MANAGER)


def _xlsx_response(data: bytes, filename: str) -> Response:
    return Response(
        content=data,
        media_type=XLSX_MIME,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/excel")
async def export_health_journal(
    body: DateRange,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    start, end = body.start_date, body.end_date
    try:
        data = await health_journal_xlsx(db, scope, start, end)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _xlsx_response(data, f"health-journal-{start}-{end}.xlsx")


@router.post("/temperature-excel")
async def export_temperature_journal(
    body: DateRange,
    scope: Scope = Depends(_scope_dep),
    db: AsyncSession = Depends(get_db),
):
    if scope.role == CanonicalRole.MANAGER and not scope.point_id:
        raise HTTPException(400, "Select a point before exporting the temperature journal")
    start, end = body.start_date, body.end_date
    try:
        data = await temperature_journal_xlsx(db, scope, start, end)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _xlsx_response(data, f"temperature-journal-{start}-{end}.xlsx")

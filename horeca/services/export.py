"""Journal export to xlsx: health journal matrix and temperature journal."""

from __future__ import annotations

import asyncio
import datetime as dt
import io
from dataclasses import dataclass

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db import crud
from horeca.models import EmployeeStatus, TemperatureRecord, Equipment
from horeca.services.acl import CanonicalRole
from horeca.services.scope import Scope

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

STATUS_CODES = {
    "healthy": "зд.",
    "sick": "б/л",
    "vacation": "отп.",
    "dayoff": "В",
}

HEALTH_HEADERS = ["№ п/п", "Ф.И.О. работника", "Должность", "Отдел"]
TEMPERATURE_HEADERS = ["№", "Дата", "Время", "Оборудование", "Зона", "Температура (°C)", "Заметки", "Записал"]

MAX_EXPORT_DAYS = 366


@dataclass
class EmployeeRow:
    id: str
    name: str
    position: str
    department: str


def date_span(start: dt.date, end: dt.date) -> list[dt.date]:
    if end < start:
        raise ValueError("End date is before start date")
    days = (end - start).days + 1
    if days > MAX_EXPORT_DAYS:
        raise ValueError(f"Export period is limited to {MAX_EXPORT_DAYS} days")
    return [start + dt.timedelta(days=i) for i in range(days)]


def _autosize(ws, widths: list[int]) -> None:
    for idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width


def _to_bytes(wb: Workbook) -> bytes:
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def build_health_journal(
    employees: list[EmployeeRow],
    statuses: dict[tuple[str, dt.date], str],
    dates: list[dt.date],
) -> bytes:
    """One row per employee, one column per day, cells hold status codes."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Журнал здоровья"

    ws.append(HEALTH_HEADERS + [d.strftime("%d.%m") for d in dates])
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for i, emp in enumerate(employees, start=1):
        row = [i, emp.name or "Без имени", emp.position, emp.department]
        row += [STATUS_CODES.get(statuses.get((emp.id, d), ""), "") for d in dates]
        ws.append(row)

    _autosize(ws, [8, 25, 15, 15] + [8] * len(dates))
    return _to_bytes(wb)


def build_temperature_journal(records: list[TemperatureRecord]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Журнал температур"

    ws.append(TEMPERATURE_HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for i, rec in enumerate(records, start=1):
        eq = rec.equipment
        ws.append([
            i,
            rec.date.strftime("%d.%m.%Y"),
            rec.time,
            eq.type if eq else "",
            eq.zone if eq else "",
            rec.temperature,
            rec.notes or "",
            rec.recorded_by or "",
        ])

    _autosize(ws, [6, 12, 8, 25, 15, 16, 30, 20])
    return _to_bytes(wb)


# ── Data gathering ────────────────────────────────────────

async def health_journal_xlsx(db: AsyncSession, scope: Scope, start: dt.date, end: dt.date) -> bytes:
    dates = date_span(start, end)
    staff = await crud.list_staff(db, scope.tenant_id, scope.point_id)

    employees = [
        EmployeeRow(
            id=user.id,
            name=user.name,
            position=user.position or ("Сотрудник точки" if role == CanonicalRole.POINT_MANAGER else "Сотрудник"),
            department=user.point.name if user.point else "Не назначен",
        )
        for user, role in staff
    ]

    stmt = select(EmployeeStatus).where(
        EmployeeStatus.tenant_id == scope.tenant_id,
        EmployeeStatus.employee_id.in_([e.id for e in employees]),
        EmployeeStatus.date >= start,
        EmployeeStatus.date <= end,
    )
    if scope.point_id:
        stmt = stmt.where(EmployeeStatus.point_id == scope.point_id)
    result = await db.execute(stmt)
    statuses = {(s.employee_id, s.date): s.status for s in result.scalars().all()}

    return await asyncio.to_thread(build_health_journal, employees, statuses, dates)


async def temperature_journal_xlsx(db: AsyncSession, scope: Scope, start: dt.date, end: dt.date) -> bytes:
    date_span(start, end)
    stmt = (
        select(TemperatureRecord)
        .join(Equipment, Equipment.id == TemperatureRecord.equipment_id)
        .where(
            TemperatureRecord.tenant_id == scope.tenant_id,
            TemperatureRecord.date >= start,
            TemperatureRecord.date <= end,
        )
        .order_by(TemperatureRecord.date, TemperatureRecord.time, Equipment.type)
    )
    if scope.point_id:
        stmt = stmt.where(TemperatureRecord.point_id == scope.point_id)
    result = await db.execute(stmt)
    records = list(result.scalars().all())
    return await asyncio.to_thread(build_temperature_journal, records)

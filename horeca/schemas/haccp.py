from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import Field

from horeca.schemas.common import CamelModel

StatusValue = Literal["healthy", "sick", "vacation", "dayoff"]


class EmployeeStatusCreate(CamelModel):
    employee_id: str = Field(min_length=1)
    date: dt.date
    status: StatusValue
    notes: str = ""


class EmployeeStatusRead(CamelModel):
    id: str
    employee_id: str
    employee_name: str
    employee_email: str
    date: dt.date
    status: str
    notes: str = ""
    updated_by: str = ""
    point_id: str | None = None
    point_name: str | None = None


class HealthRecordCreate(CamelModel):
    employee_name: str = Field(min_length=1)
    position: str = ""
    temperature: float = Field(ge=30, le=45)
    symptoms: str = ""
    health_status: Literal["healthy", "sick", "suspended"] = "healthy"
    notes: str = ""
    responsible: str = Field(min_length=1)
    date: dt.date | None = None
    point_id: str | None = None


class HealthRecordRead(CamelModel):
    id: str
    date: dt.date
    employee_name: str
    position: str
    temperature: float
    symptoms: str
    health_status: str
    notes: str
    responsible: str
    point_id: str | None = None

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import Field, field_validator

from horeca.schemas.common import CamelModel

EquipmentStatus = Literal["active", "inactive", "maintenance"]


class EquipmentCreate(CamelModel):
    type: str = Field(min_length=1)
    zone: str = Field(min_length=1)
    description: str = ""
    serial_number: str = ""
    status: EquipmentStatus = "active"
    point_id: str | None = None


class EquipmentUpdate(CamelModel):
    type: str | None = Field(default=None, min_length=1)
    zone: str | None = Field(default=None, min_length=1)
    description: str | None = None
    serial_number: str | None = None
    status: EquipmentStatus | None = None


class EquipmentRead(CamelModel):
    id: str
    type: str
    zone: str
    description: str
    serial_number: str
    status: str
    point_id: str | None = None
    created_at: dt.datetime


class TemperatureRecordCreate(CamelModel):
    equipment_id: str = Field(min_length=1)
    temperature: float
    date: dt.date
    period: Literal["morning", "evening"] | None = None
    time: str | None = None
    notes: str = ""

    @field_validator("time")
    @classmethod
    def _hh_mm(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            dt.datetime.strptime(v, "%H:%M")
        except ValueError:
            raise ValueError("time must be HH:MM")
        return v


class EquipmentBrief(CamelModel):
    id: str
    type: str
    zone: str
    status: str


class TemperatureRecordRead(CamelModel):
    id: str
    equipment_id: str
    date: dt.date
    period: str
    time: str
    temperature: float
    notes: str
    recorded_by: str
    point_id: str | None = None
    equipment: EquipmentBrief | None = None

"""Refrigeration equipment and its twice-daily temperature readings."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import String, Date, Float, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from horeca.models.base import Base, ULIDMixin, TimestampMixin

EQUIPMENT_STATUSES = ("active", "inactive", "maintenance")
PERIOD_TIMES = {"morning": "08:00", "evening": "20:00"}


class Equipment(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "equipment"

    tenant_id: Mapped[str] = mapped_column(String(26), ForeignKey("tenants.id"), index=True)
    point_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("points.id"), nullable=True, index=True)
    type: Mapped[str] = mapped_column(String(100))
    zone: Mapped[str] = mapped_column(String(100))
    description: Mapped[str] = mapped_column(Text, default="")
    serial_number: Mapped[str] = mapped_column(String(100), default="")
    status: Mapped[str] = mapped_column(String(20), default="active")

    point = relationship("Point", lazy="selectin")


class TemperatureRecord(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "temperature_records"
    __table_args__ = (UniqueConstraint("equipment_id", "date", "period"),)

    tenant_id: Mapped[str] = mapped_column(String(26), ForeignKey("tenants.id"), index=True)
    point_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("points.id"), nullable=True, index=True)
    equipment_id: Mapped[str] = mapped_column(String(26), ForeignKey("equipment.id", ondelete="CASCADE"), index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    period: Mapped[str] = mapped_column(String(10), default="morning")  # morning | evening
    time: Mapped[str] = mapped_column(String(5), default="08:00")
    temperature: Mapped[float] = mapped_column(Float)
    notes: Mapped[str] = mapped_column(Text, default="")
    recorded_by: Mapped[str] = mapped_column(String(255), default="")

    equipment = relationship("Equipment", lazy="selectin")

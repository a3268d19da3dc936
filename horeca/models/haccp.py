"""HACCP journals: daily employee health status and health check records."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import String, Date, Float, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from horeca.models.base import Base, ULIDMixin, TimestampMixin

EMPLOYEE_STATUSES = ("healthy", "sick", "vacation", "dayoff")


class EmployeeStatus(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "employee_statuses"
    __table_args__ = (UniqueConstraint("employee_id", "date"),)

    tenant_id: Mapped[str] = mapped_column(String(26), ForeignKey("tenants.id"), index=True)
    point_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("points.id"), nullable=True, index=True)
    employee_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    status: Mapped[str] = mapped_column(String(20))  # healthy | sick | vacation | dayoff
    notes: Mapped[str] = mapped_column(Text, default="")
    updated_by: Mapped[str] = mapped_column(String(255), default="")  # name or email of the editor

    employee = relationship("User", foreign_keys=[employee_id], lazy="selectin")
    point = relationship("Point", lazy="selectin")


class HealthRecord(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "health_records"

    tenant_id: Mapped[str] = mapped_column(String(26), ForeignKey("tenants.id"), index=True)
    point_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("points.id"), nullable=True, index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    employee_name: Mapped[str] = mapped_column(String(255))
    position: Mapped[str] = mapped_column(String(255), default="")
    temperature: Mapped[float] = mapped_column(Float)
    symptoms: Mapped[str] = mapped_column(Text, default="")
    health_status: Mapped[str] = mapped_column(String(20), default="healthy")
    notes: Mapped[str] = mapped_column(Text, default="")
    responsible: Mapped[str] = mapped_column(String(255))
    created_by: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from horeca.models.base import Base, ULIDMixin, TimestampMixin

PLANS = ("BASIC", "PRO")


class Subscription(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "subscriptions"

    tenant_id: Mapped[str] = mapped_column(String(26), ForeignKey("tenants.id"), unique=True)
    plan: Mapped[str] = mapped_column(String(20), default="BASIC")  # BASIC | PRO
    status: Mapped[str] = mapped_column(String(20), default="TRIAL")  # TRIAL | ACTIVE | CANCELED
    provider: Mapped[str] = mapped_column(String(20), default="mock")
    current_period_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

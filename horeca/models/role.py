"""Roles, role assignments and the per-tenant page access matrix.

Global roles (tenant_id NULL) are shared by every tenant; roles created by an
organization owner belong to that tenant. Role names are unique platform-wide.
"""

from __future__ import annotations

from sqlalchemy import String, Boolean, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from horeca.models.base import Base, ULIDMixin, TimestampMixin


class Role(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    description: Mapped[str] = mapped_column(String(500), default="")
    tenant_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("tenants.id"), nullable=True)
    # Custom PermissionSet; empty means "use the defaults for this role"
    permissions: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    inherits_from: Mapped[str | None] = mapped_column(String(100), nullable=True)


class UserRole(Base, ULIDMixin):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role_id", "tenant_id"),)

    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), index=True)
    role_id: Mapped[str] = mapped_column(String(26), ForeignKey("roles.id"), index=True)
    tenant_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("tenants.id"), nullable=True, index=True)

    user = relationship("User", back_populates="user_roles")
    role = relationship("Role", lazy="selectin")


class RolePageAccess(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "role_page_access"
    __table_args__ = (UniqueConstraint("tenant_id", "role", "page_slug"),)

    tenant_id: Mapped[str] = mapped_column(String(26), ForeignKey("tenants.id"), index=True)
    role: Mapped[str] = mapped_column(String(100))
    page_slug: Mapped[str] = mapped_column(String(100))
    allowed: Mapped[bool] = mapped_column(Boolean, default=True)

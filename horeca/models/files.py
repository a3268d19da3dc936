"""Document storage: folders, stored files and role-based access rows."""

from __future__ import annotations

from sqlalchemy import String, Integer, Text, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from horeca.models.base import Base, ULIDMixin, TimestampMixin


class Folder(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "folders"

    tenant_id: Mapped[str] = mapped_column(String(26), ForeignKey("tenants.id"), index=True)
    parent_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("folders.id"), nullable=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")
    created_by: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))

    access = relationship("FileAccess", back_populates="folder", lazy="selectin", cascade="all, delete-orphan")


class StoredFile(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "files"

    tenant_id: Mapped[str] = mapped_column(String(26), ForeignKey("tenants.id"), index=True)
    folder_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("folders.id"), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    display_name: Mapped[str] = mapped_column(String(255))
    original_name: Mapped[str] = mapped_column(String(255))
    size: Mapped[int] = mapped_column(Integer)
    mime: Mapped[str] = mapped_column(String(100))
    ext: Mapped[str] = mapped_column(String(20), default="")
    description: Mapped[str] = mapped_column(Text, default="")
    storage_key: Mapped[str] = mapped_column(String(500), unique=True)
    created_by: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))

    access = relationship("FileAccess", back_populates="file", lazy="selectin", cascade="all, delete-orphan")


class FileAccess(Base, ULIDMixin):
    __tablename__ = "file_access"

    file_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("files.id", ondelete="CASCADE"), nullable=True, index=True)
    folder_id: Mapped[str | None] = mapped_column(String(26), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True)
    role_id: Mapped[str] = mapped_column(String(26), ForeignKey("roles.id"))
    can_read: Mapped[bool] = mapped_column(Boolean, default=True)
    can_write: Mapped[bool] = mapped_column(Boolean, default=False)
    can_delete: Mapped[bool] = mapped_column(Boolean, default=False)

    file = relationship("StoredFile", back_populates="access")
    folder = relationship("Folder", back_populates="access")

from __future__ import annotations

import datetime as dt

from pydantic import Field

from horeca.schemas.common import CamelModel


class AccessEntry(CamelModel):
    role_id: str
    can_read: bool = True
    can_write: bool = False
    can_delete: bool = False


class FileMetadata(CamelModel):
    """JSON sent alongside a multipart upload."""

    display_name: str | None = None
    description: str = ""
    folder_id: str | None = None
    access_roles: list[AccessEntry] = []


class FileUpdate(CamelModel):
    display_name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    folder_id: str | None = None
    move_to_root: bool = False


class FolderCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    parent_id: str | None = None
    access_roles: list[AccessEntry] = []


class FolderUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None


class FileRead(CamelModel):
    id: str
    name: str
    display_name: str
    original_name: str
    size: int
    mime: str
    ext: str
    description: str
    folder_id: str | None = None
    created_by: str
    created_at: dt.datetime
    access_roles: list[AccessEntry] = []


class FolderRead(CamelModel):
    id: str
    name: str
    description: str
    parent_id: str | None = None
    created_by: str
    created_at: dt.datetime
    access_roles: list[AccessEntry] = []

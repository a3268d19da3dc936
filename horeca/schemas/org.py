"""Organization schemas: signup, employees, points, users and roles."""

from __future__ import annotations

import datetime as dt
import re
from typing import Annotated

from pydantic import AfterValidator, Field

from horeca.schemas.common import CamelModel

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not _EMAIL_RE.match(v):
        raise ValueError("Invalid email")
    return v


Email = Annotated[str, AfterValidator(_normalize_email)]


class SignupRequest(CamelModel):
    email: Email
    password: str = Field(min_length=8, max_length=72)
    name: str | None = Field(default=None, max_length=255)


class LoginRequest(CamelModel):
    email: str
    password: str


class SwitchPointRequest(CamelModel):
    point_id: str


class EmployeeCreate(CamelModel):
    name: str = Field(min_length=1)
    email: Email
    position: str = ""
    phone: str = ""
    point_id: str | None = None


class EmployeeRead(CamelModel):
    id: str
    name: str
    email: str
    position: str = ""
    phone: str = ""
    role: str | None = None
    point_id: str | None = None
    point_name: str | None = None
    is_active: bool = True


class PointCreate(CamelModel):
    name: str = Field(min_length=1)
    address: str = ""


class PointUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    address: str | None = None
    is_active: bool | None = None


class UserCreate(CamelModel):
    email: Email
    name: str = Field(min_length=1)
    role_name: str = "EMPLOYEE"
    point_id: str | None = None


class UserRoleUpdate(CamelModel):
    role_name: str = Field(min_length=1)


class RoleCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    permissions: dict | None = None
    inherits_from: str | None = None


class RoleUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    permissions: dict | None = None
    inherits_from: str | None = None


class PageAccessEntry(CamelModel):
    role: str
    page_slug: str
    allowed: bool


class PageAccessUpdate(CamelModel):
    entries: list[PageAccessEntry]


class RoleUser(CamelModel):
    id: str
    name: str
    email: str


class RoleRead(CamelModel):
    id: str
    name: str
    description: str = ""
    tenant_id: str | None = None
    permissions: dict | None = None
    inherits_from: str | None = None
    is_system: bool = False
    user_count: int = 0
    users: list[RoleUser] = []
    created_at: dt.datetime
    updated_at: dt.datetime | None = None


class UserRead(CamelModel):
    id: str
    email: str
    name: str
    tenant_id: str | None = None
    point_id: str | None = None
    point_name: str | None = None
    position: str = ""
    phone: str = ""
    roles: list[str] = []
    is_active: bool = True
    is_platform_owner: bool = False
    created_at: dt.datetime
    last_login_at: dt.datetime | None = None


class PermissionsUpdate(CamelModel):
    permissions: dict


class PointRead(CamelModel):
    id: str
    name: str
    address: str = ""
    is_active: bool = True
    user_count: int = 0
    created_at: dt.datetime
    updated_at: dt.datetime | None = None

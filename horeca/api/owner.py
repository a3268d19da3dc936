"""Owner API: role catalogue, custom permission sets and user management."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy import select, or_, true
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db import crud
from horeca.db.engine import get_db
from horeca.dependencies import require_role
from horeca.models import Point, Role, User, UserRole
from horeca.schemas import (
    PermissionsUpdate, RoleCreate, RoleRead, RoleUpdate, RoleUser,
    UserCreate, UserRead, UserRoleUpdate,
)
from horeca.services.acl import CanonicalRole, normalize_role_name, role_rank
from horeca.services.auth import AuthContext
from horeca.services.permissions import PermissionSetModel
from horeca.services.tenant_bootstrap import EmailTakenError, create_member

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/owner", tags=["owner"])

_owner_dep = require_role(CanonicalRole.ORGANIZATION_OWNER)

SYSTEM_ROLE_NAMES = frozenset(r.value for r in CanonicalRole)


# ── Helpers ───────────────────────────────────────────────

def _validate_permissions(raw: dict | None) -> dict | None:
    if raw is None:
        return None
    try:
        return PermissionSetModel.model_validate(raw).model_dump()
    except ValidationError:
        raise HTTPException(400, "Invalid permission set")


def _visible_roles_clause(auth: AuthContext):
    if auth.is_platform_owner:
        return true()
    return or_(Role.tenant_id.is_(None), Role.tenant_id == auth.tenant_id)


async def _editable_role(db: AsyncSession, role_id: str, auth: AuthContext) -> Role:
    """Org owners edit only roles of their own tenant; platform owners edit any."""
    role = await crud.get_role(db, role_id)
    if not role:
        raise HTTPException(404, "Role not found")
    if auth.is_platform_owner:
        return role
    if role.tenant_id is None:
        raise HTTPException(403, "Global roles can only be changed by the platform owner")
    if role.tenant_id != auth.tenant_id:
        raise HTTPException(404, "Role not found")
    return role


async def _grantable_role(db: AsyncSession, name: str, auth: AuthContext) -> Role:
    """Resolve a role the caller may hand out: global or their own tenant's."""
    if auth.is_platform_owner:
        role = await crud.get_role_by_name(db, name)
    else:
        role = await crud.get_tenant_role_by_name(db, name, auth.tenant_id)
    if not role:
        raise HTTPException(404, "Role not found")
    _check_grantable(auth, role)
    return role


def _effective_rank(role: Role) -> int:
    return role_rank(normalize_role_name(role.name) or normalize_role_name(role.inherits_from))


def _check_grantable(auth: AuthContext, role: Role) -> None:
    """A caller cannot hand out a role ranked above their own."""
    if _effective_rank(role) > role_rank(auth.role):
        raise HTTPException(403, "Cannot assign a role above your own")


def _check_inherits(auth: AuthContext, inherits_from: str | None) -> None:
    if not inherits_from:
        return
    base = normalize_role_name(inherits_from)
    if base is None:
        raise HTTPException(400, f"Unknown base role: {inherits_from}")
    if role_rank(base) > role_rank(auth.role):
        raise HTTPException(403, "Cannot inherit from a role above your own")


async def _role_users(db: AsyncSession, role_ids: list[str], auth: AuthContext) -> dict[str, list[User]]:
    stmt = (
        select(UserRole.role_id, User)
        .join(User, User.id == UserRole.user_id)
        .where(UserRole.role_id.in_(role_ids))
    )
    if not auth.is_platform_owner:
        stmt = stmt.where(UserRole.tenant_id == auth.tenant_id)
    users: dict[str, list[User]] = {rid: [] for rid in role_ids}
    for role_id, user in (await db.execute(stmt)).all():
        users[role_id].append(user)
    return users


def _role_out(role: Role, users: list[User]) -> dict:
    return RoleRead(
        id=role.id,
        name=role.name,
        description=role.description or "",
        tenant_id=role.tenant_id,
        permissions=role.permissions,
        inherits_from=role.inherits_from,
        is_system=role.name in SYSTEM_ROLE_NAMES,
        user_count=len(users),
        users=[RoleUser(id=u.id, name=u.name, email=u.email) for u in users],
        created_at=role.created_at,
        updated_at=role.updated_at,
    ).model_dump(by_alias=True, mode="json")


def _user_out(user: User) -> dict:
    return UserRead(
        id=user.id,
        email=user.email,
        name=user.name,
        tenant_id=user.tenant_id,
        point_id=user.point_id,
        point_name=user.point.name if user.point else None,
        position=user.position or "",
        phone=user.phone or "",
        roles=[link.role.name for link in user.user_roles if link.role],
        is_active=user.is_active,
        is_platform_owner=user.is_platform_owner,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
    ).model_dump(by_alias=True, mode="json")


# ── Roles ─────────────────────────────────────────────────

@router.get("/roles")
async def list_roles(
    auth: AuthContext = Depends(_owner_dep),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Role).where(_visible_roles_clause(auth)).order_by(Role.name))
    roles = list(result.scalars().all())
    users = await _role_users(db, [r.id for r in roles], auth)
    return {"roles": [_role_out(r, users[r.id]) for r in roles]}


@router.post("/roles", status_code=201)
async def create_role(
    body: RoleCreate,
    auth: AuthContext = Depends(_owner_dep),
    db: AsyncSession = Depends(get_db),
):
    name = body.name.strip()
    if await crud.get_role_by_name(db, name):
        raise HTTPException(409, "Role with this name already exists")
    _check_inherits(auth, body.inherits_from)

    role = Role(
        name=name,
        description=body.description,
        tenant_id=None if auth.is_platform_owner else auth.tenant_id,
        permissions=_validate_permissions(body.permissions),
        inherits_from=body.inherits_from,
    )
    db.add(role)
    await db.commit()
    await db.refresh(role)
    logger.info(f"Role '{role.name}' created by {auth.user_id}")
    return {"role": _role_out(role, [])}


@router.put("/roles/{role_id}")
async def update_role(
    role_id: str,
    body: RoleUpdate,
    auth: AuthContext = Depends(_owner_dep),
    db: AsyncSession = Depends(get_db),
):
    role = await _editable_role(db, role_id, auth)

    if body.name is not None and body.name.strip() != role.name:
        if role.name in SYSTEM_ROLE_NAMES:
            raise HTTPException(400, "Cannot rename base system roles")
        name = body.name.strip()
        if await crud.get_role_by_name(db, name):
            raise HTTPException(409, "Role with this name already exists")
        role.name = name
    if body.description is not None:
        role.description = body.description
    if body.permissions is not None:
        role.permissions = _validate_permissions(body.permissions)
    if body.inherits_from is not None:
        _check_inherits(auth, body.inherits_from)
        role.inherits_from = body.inherits_from or None

    await db.commit()
    await db.refresh(role)
    users = await _role_users(db, [role.id], auth)
    return {"role": _role_out(role, users[role.id])}


@router.put("/roles/{role_id}/permissions")
async def replace_role_permissions(
    role_id: str,
    body: PermissionsUpdate,
    auth: AuthContext = Depends(_owner_dep),
    db: AsyncSession = Depends(get_db),
):
    role = await _editable_role(db, role_id, auth)
    role.permissions = _validate_permissions(body.permissions)
    await db.commit()
    await db.refresh(role)
    logger.info(f"Permissions of role '{role.name}' replaced by {auth.user_id}")
    users = await _role_users(db, [role.id], auth)
    return {"role": _role_out(role, users[role.id])}


@router.delete("/roles/{role_id}")
async def delete_role(
    role_id: str,
    auth: AuthContext = Depends(_owner_dep),
    db: AsyncSession = Depends(get_db),
):
    role = await _editable_role(db, role_id, auth)
    if await crud.count_role_users(db, role.id) > 0:
        raise HTTPException(400, "Cannot delete role that is assigned to users")
    if role.name in SYSTEM_ROLE_NAMES:
        raise HTTPException(400, "Cannot delete base system roles")
    await db.delete(role)
    await db.commit()
    return {"ok": True}


# ── Users ─────────────────────────────────────────────────

@router.get("/users")
async def list_users(
    auth: AuthContext = Depends(_owner_dep),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(User).order_by(User.created_at.desc())
    if not auth.is_platform_owner:
        stmt = stmt.where(User.tenant_id == auth.tenant_id)
    result = await db.execute(stmt)
    return {"users": [_user_out(u) for u in result.scalars().all()]}


@router.post("/users", status_code=201)
async def create_user(
    body: UserCreate,
    auth: AuthContext = Depends(_owner_dep),
    db: AsyncSession = Depends(get_db),
):
    if not auth.tenant_id:
        raise HTTPException(400, "No tenant found")
    role = await _grantable_role(db, body.role_name, auth)

    if body.point_id:
        point = await db.get(Point, body.point_id)
        if not point or point.tenant_id != auth.tenant_id:
            raise HTTPException(404, "Point not found")

    try:
        user, password = await create_member(
            db,
            tenant_id=auth.tenant_id,
            email=body.email,
            name=body.name,
            role_name=body.role_name,
            point_id=body.point_id,
        )
    except EmailTakenError:
        raise HTTPException(409, "User with this email already exists")

    await db.refresh(user, ["user_roles"])
    logger.info(f"User {user.email} created by {auth.user_id} with role {body.role_name}")
    return {"user": _user_out(user), "temporaryPassword": password}


@router.patch("/users/{user_id}/role")
async def change_user_role(
    user_id: str,
    body: UserRoleUpdate,
    auth: AuthContext = Depends(_owner_dep),
    db: AsyncSession = Depends(get_db),
):
    user = await crud.get_user(db, user_id)
    if not user or (not auth.is_platform_owner and user.tenant_id != auth.tenant_id):
        raise HTTPException(404, "User not found")

    role = await _grantable_role(db, body.role_name, auth)

    await crud.replace_user_roles(db, user, role, user.tenant_id)
    await db.refresh(user, ["user_roles"])
    logger.info(f"User {user.id} now has role {role.name}")
    return {"user": _user_out(user)}

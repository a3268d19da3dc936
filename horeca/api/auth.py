"""Auth API: signup, login, logout, current user, point switching."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db import crud
from horeca.db.engine import get_db
from horeca.dependencies import require_auth, require_role
from horeca.models import Point
from horeca.schemas import SignupRequest, LoginRequest, SwitchPointRequest
from horeca.services import page_access
from horeca.services.acl import (
    CanonicalRole, get_current_point, get_partner_points, get_user_role_names, has_role,
)
from horeca.services.auth import (
    AuthContext, SESSION_COOKIE_NAME, SESSION_MAX_AGE_DAYS,
    authenticate, create_session, remove_session,
)
from horeca.services.permissions import get_user_permissions_with_role, get_visible_menu_items
from horeca.services.tenant_bootstrap import EmailTakenError, signup as signup_tenant

router = APIRouter(prefix="/api", tags=["auth"])

_manager_dep = require_role(CanonicalRole.MANAGER)


def _set_session_cookie(response: JSONResponse, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=SESSION_MAX_AGE_DAYS * 86400,
    )


# ── Signup / login ────────────────────────────────────────

@router.post("/auth/signup", status_code=201)
async def signup(body: SignupRequest, db: AsyncSession = Depends(get_db)):
    try:
        tenant, user = await signup_tenant(db, body.email, body.password, body.name)
    except EmailTakenError:
        raise HTTPException(409, "User with this email already exists")
    return {
        "ok": True,
        "user": {"id": user.id, "email": user.email, "name": user.name},
        "tenant": {"id": tenant.id, "name": tenant.name},
        "isPlatformOwner": user.is_platform_owner,
    }


@router.post("/auth/login")
async def login(body: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    user = await authenticate(db, body.email, body.password)
    if not user:
        raise HTTPException(401, "Invalid email or password")

    ip = request.client.host if request.client else ""
    token = await create_session(user, db, ip_address=ip)
    response = JSONResponse({"ok": True, "user": {"id": user.id, "email": user.email, "name": user.name}})
    _set_session_cookie(response, token)
    return response


@router.post("/auth/logout")
async def logout(request: Request, db: AsyncSession = Depends(get_db)):
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        await remove_session(token, db)
    response = JSONResponse({"ok": True})
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@router.get("/auth/me")
async def me(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    role, perms = await get_user_permissions_with_role(db, auth.user_id, auth.tenant_id)
    menu = []
    if auth.tenant_id:
        roles = [role] if role else await get_user_role_names(db, auth.user_id, auth.tenant_id)
        menu = [
            {"slug": m.slug, "label": m.label}
            for m in await page_access.get_menu_for(db, auth.tenant_id, roles)
        ]
    point = await get_current_point(db, auth.user_id)
    switchable = []
    if has_role(role, CanonicalRole.MANAGER):
        switchable = [{"id": p.id, "name": p.name} for p in await get_partner_points(db, auth.user_id)]
    return {
        "id": auth.user_id,
        "email": auth.email,
        "name": auth.name,
        "tenantId": auth.tenant_id,
        "pointId": auth.point_id,
        "point": {"id": point.id, "name": point.name} if point else None,
        "availablePoints": switchable,
        "isPlatformOwner": auth.is_platform_owner,
        "role": role.value if role else None,
        "permissions": perms,
        "visibleMenu": get_visible_menu_items(perms),
        "menu": menu,
    }


# ── Point switching ───────────────────────────────────────

@router.post("/switch-point")
async def switch_point(
    body: SwitchPointRequest,
    auth: AuthContext = Depends(_manager_dep),
    db: AsyncSession = Depends(get_db),
):
    point = await db.get(Point, body.point_id)
    if not point or point.tenant_id != auth.tenant_id or not point.is_active:
        raise HTTPException(404, "Point not found")

    user = await crud.get_user(db, auth.user_id)
    user.point_id = point.id
    await db.commit()
    return {"ok": True, "pointId": point.id, "pointName": point.name}

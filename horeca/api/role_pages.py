"""Page access matrix API (owner only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.db.engine import get_db
from horeca.dependencies import require_scope
from horeca.schemas import PageAccessUpdate
from horeca.services.acl import CanonicalRole
from horeca.services.page_access import MENU, get_matrix, get_role_page_map, default_allowed, set_page_access
from horeca.services.scope import Scope

router = APIRouter(prefix="/api/roles/pages", tags=["roles"])

_owner_dep = require_scope(CanonicalRole.ORGANIZATION_OWNER)


@router.get("")
async def get_page_access(
    role: str | None = Query(default=None),
    scope: Scope = Depends(_owner_dep),
    db: AsyncSession = Depends(get_db),
):
    """Without ``role``: the full matrix for every canonical role."""
    if not role:
        return {"matrix": await get_matrix(db, scope.tenant_id, [r.value for r in CanonicalRole])}

    page_map = await get_role_page_map(db, scope.tenant_id, role)
    items = [
        {
            "slug": item.slug,
            "label": item.label,
            "system": item.system,
            "allowed": page_map.get(item.slug, default_allowed(role, item.slug)),
        }
        for item in MENU
    ]
    return {"role": role, "items": items}


@router.post("")
async def update_page_access(
    body: PageAccessUpdate,
    scope: Scope = Depends(_owner_dep),
    db: AsyncSession = Depends(get_db),
):
    try:
        await set_page_access(
            db, scope.tenant_id, [(e.role, e.page_slug, e.allowed) for e in body.entries],
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"ok": True}

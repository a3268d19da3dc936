"""FastAPI dependency providers for auth, role enforcement and query scoping."""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.config import Settings, get_settings
from horeca.db.engine import get_db
from horeca.services.acl import CanonicalRole, has_role
from horeca.services.auth import AuthContext, get_current_user
from horeca.services.permissions import get_user_permissions_with_role, has_permission
from horeca.services.scope import Scope, scope_for

logger = logging.getLogger(__name__)


def get_settings_dep() -> Settings:
    return get_settings()


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Require a valid authenticated session. Returns AuthContext."""
    return await get_current_user(request, db)


def require_role(min_role: CanonicalRole):
    """Factory: returns a dependency that enforces a minimum role rank."""
    async def _check(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if not has_role(auth.role, min_role):
            logger.warning(f"User {auth.user_id} with role {auth.role} denied, needs {min_role.value}")
            raise HTTPException(403, "Insufficient permissions")
        return auth
    return _check


def require_scope(min_role: CanonicalRole = CanonicalRole.EMPLOYEE):
    """Factory: enforce a minimum role and return the tenant/point Scope."""
    role_dep = require_role(min_role)

    async def _scope(auth: AuthContext = Depends(role_dep)) -> Scope:
        return scope_for(auth)
    return _scope


def require_permission(category: str, key: str):
    """Factory: enforce a single PermissionSet flag for the current user."""
    async def _check(
        auth: AuthContext = Depends(require_auth),
        db: AsyncSession = Depends(get_db),
    ) -> AuthContext:
        _, perms = await get_user_permissions_with_role(db, auth.user_id, auth.tenant_id)
        if not has_permission(perms, category, key):
            logger.warning(f"User {auth.user_id} denied permission {category}.{key}")
            raise HTTPException(403, "Insufficient permissions")
        return auth
    return _check

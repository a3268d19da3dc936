"""Authentication service: DB-backed sessions, bcrypt passwords."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta

import bcrypt
from fastapi import Request, HTTPException
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from horeca.config import get_settings
from horeca.models import User, UserSession
from horeca.services.acl import CanonicalRole, get_user_role

_settings = get_settings()

SESSION_COOKIE_NAME = _settings.session.cookie_name
SESSION_MAX_AGE_DAYS = _settings.session.max_age_days


@dataclass
class AuthContext:
    user_id: str
    tenant_id: str | None
    point_id: str | None
    email: str
    name: str
    is_platform_owner: bool = False
    role: CanonicalRole | None = None


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def generate_password(length: int = 12) -> str:
    """Random temporary password handed out once on account creation."""
    return secrets.token_urlsafe(length)[:length]


def _hash_token(token: str) -> str:
    """SHA-256 hash of a session token for DB storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


async def create_session(user: User, db: AsyncSession, ip_address: str = "") -> str:
    """Create a DB-backed session. Returns the raw token (not the hash)."""
    token = secrets.token_urlsafe(48)
    expires_at = datetime.now(timezone.utc) + timedelta(days=SESSION_MAX_AGE_DAYS)

    db.add(UserSession(
        user_id=user.id,
        token_hash=_hash_token(token),
        expires_at=expires_at,
        ip_address=ip_address,
    ))
    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    return token


async def validate_session(token: str, db: AsyncSession) -> User | None:
    """Active user owning an unexpired session for this token, else None."""
    stmt = (
        select(User)
        .join(UserSession, UserSession.user_id == User.id)
        .where(
            UserSession.token_hash == _hash_token(token),
            UserSession.expires_at > datetime.now(timezone.utc),
            User.is_active.is_(True),
        )
    )
    return (await db.execute(stmt)).scalars().first()


async def remove_session(token: str, db: AsyncSession) -> None:
    await db.execute(delete(UserSession).where(UserSession.token_hash == _hash_token(token)))
    await db.commit()


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    stmt = select(User).where(User.email == email.strip().lower(), User.is_active.is_(True))
    user = (await db.execute(stmt)).scalars().first()
    if user and verify_password(password, user.password_hash):
        return user
    return None


async def build_context(db: AsyncSession, user: User) -> AuthContext:
    """Snapshot of the user plus their resolved canonical role."""
    return AuthContext(
        user_id=user.id,
        tenant_id=user.tenant_id,
        point_id=user.point_id,
        email=user.email,
        name=user.name,
        is_platform_owner=user.is_platform_owner,
        role=await get_user_role(db, user.id, user.tenant_id),
    )


async def get_current_user(request: Request, db: AsyncSession) -> AuthContext:
    """Resolve the session cookie to an AuthContext; 401 when missing or stale."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = await validate_session(token, db)
    if user is None:
        raise HTTPException(status_code=401, detail="Session expired")
    return await build_context(db, user)

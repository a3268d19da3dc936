"""Shared fixtures: an in-memory database, an ASGI test client and a demo organization."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from horeca.db import crud
from horeca.db.engine import get_db
from horeca.main import app
from horeca.models import Base
from horeca.services.acl import CanonicalRole
from horeca.services.auth import SESSION_COOKIE_NAME, create_session
from horeca.services.tenant_bootstrap import create_member, create_point_with_user, create_tenant


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Return a callable that switches the client's session cookie to another user."""
    def _login(token: str) -> AsyncClient:
        client.cookies.set(SESSION_COOKIE_NAME, token)
        return client
    return _login


@pytest_asyncio.fixture
async def org(session_factory):
    """Tenant with one point and a user for every role below platform owner.

    Exposes ``tokens`` keyed by canonical role value plus the created rows.
    """
    async with session_factory() as db:
        await crud.seed_canonical_roles(db)
        tenant, owner = await create_tenant(
            db, name="Test Cafe", owner_email="owner@test.com", owner_password="ownerpass123",
            owner_name="Olga Owner",
        )
        point, point_user, _ = await create_point_with_user(db, tenant.id, "Main Street", "1 Main St")
        manager, _ = await create_member(
            db, tenant.id, "manager@test.com", "Max Manager", CanonicalRole.MANAGER.value,
        )
        employee, _ = await create_member(
            db, tenant.id, "cook@test.com", "Anna Cook", CanonicalRole.EMPLOYEE.value,
            point_id=point.id, position="Cook",
        )

        tokens = {
            CanonicalRole.ORGANIZATION_OWNER.value: await create_session(owner, db),
            CanonicalRole.MANAGER.value: await create_session(manager, db),
            CanonicalRole.POINT_MANAGER.value: await create_session(point_user, db),
            CanonicalRole.EMPLOYEE.value: await create_session(employee, db),
        }

    return SimpleNamespace(
        tenant=tenant,
        point=point,
        owner=owner,
        manager=manager,
        point_user=point_user,
        employee=employee,
        tokens=tokens,
    )


@pytest_asyncio.fixture
async def other_org(session_factory):
    """A second, unrelated tenant with its own point."""
    async with session_factory() as db:
        tenant, owner = await create_tenant(
            db, name="Other Bistro", owner_email="owner@other.com", owner_password="ownerpass123",
        )
        point, point_user, _ = await create_point_with_user(db, tenant.id, "Other Point")
        employee, _ = await create_member(
            db, tenant.id, "waiter@other.com", "Oleg Waiter", CanonicalRole.EMPLOYEE.value,
            point_id=point.id,
        )
        token = await create_session(owner, db)

    return SimpleNamespace(tenant=tenant, point=point, owner=owner, employee=employee, token=token)

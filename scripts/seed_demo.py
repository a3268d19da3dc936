"""Seed the database with a demo organization: one point and a user per role."""

import asyncio
import datetime as dt

from horeca.db import crud
from horeca.db.engine import async_session_factory, create_all
from horeca.services.acl import CanonicalRole
from horeca.services.tenant_bootstrap import create_member, create_point_with_user, create_tenant

DEMO_PASSWORD = "demo-password"


async def seed():
    await create_all()

    async with async_session_factory() as db:
        await crud.seed_canonical_roles(db)

        if await crud.get_user_by_email(db, "owner@demo.local"):
            print("Demo organization already exists, skipping seed.")
            return

        tenant, owner = await create_tenant(
            db,
            name="Demo Cafe",
            owner_email="owner@demo.local",
            owner_password=DEMO_PASSWORD,
            owner_name="Demo Owner",
        )
        print(f"Tenant: {tenant.name} (id: {tenant.id})")
        print(f"  {CanonicalRole.ORGANIZATION_OWNER.value}: {owner.email} / {DEMO_PASSWORD}")

        point, point_user, point_password = await create_point_with_user(
            db, tenant.id, "Demo Cafe - Main Street", "1 Main Street",
        )
        print(f"Point: {point.name} (id: {point.id})")
        print(f"  {CanonicalRole.POINT_MANAGER.value}: {point_user.email} / {point_password}")

        manager, manager_password = await create_member(
            db, tenant.id, "manager@demo.local", "Demo Manager", CanonicalRole.MANAGER.value,
        )
        print(f"  {CanonicalRole.MANAGER.value}: {manager.email} / {manager_password}")

        for i, name in enumerate(["Anna Cook", "Ivan Barista"], start=1):
            employee, password = await create_member(
                db, tenant.id, f"employee{i}@demo.local", name, CanonicalRole.EMPLOYEE.value,
                point_id=point.id, position="Cook" if i == 1 else "Barista",
            )
            await crud.upsert_employee_status(db, employee, dt.date.today(), "healthy", updated_by=owner.name)
            print(f"  {CanonicalRole.EMPLOYEE.value}: {employee.email} / {password}")

        fridge = await crud.create_equipment(
            db, tenant.id, point.id, type="Холодильник", zone="Кухня", description="Main fridge",
        )
        await crud.upsert_temperature_record(
            db, fridge, dt.date.today(), 4.0, period="morning", recorded_by=point_user.name,
        )
        print(f"Equipment: {fridge.type} (id: {fridge.id})")

    print("\nSeed complete. Start the server with: uvicorn horeca.main:app --reload")


if __name__ == "__main__":
    asyncio.run(seed())

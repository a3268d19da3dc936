"""CLI for HoReCa Ops: create tables, seed roles, bootstrap tenants and owners."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys


def _read_password(given: str) -> str:
    """Use the given password or prompt for one interactively."""
    password = given
    if not password:
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match")
            sys.exit(1)
    if len(password) < 8:
        print("Password must be at least 8 characters")
        sys.exit(1)
    return password


async def cmd_init_db(args):
    from horeca.db.engine import create_all

    await create_all()
    print("Database tables created")


async def cmd_seed_roles(args):
    from horeca.db import crud
    from horeca.db.engine import async_session_factory, create_all

    await create_all()
    async with async_session_factory() as db:
        roles = await crud.seed_canonical_roles(db)
    for role in roles:
        print(f"Role {role.name} (id={role.id})")


async def cmd_create_tenant(args):
    from horeca.db.engine import async_session_factory, create_all
    from horeca.services.tenant_bootstrap import EmailTakenError, create_tenant

    await create_all()
    password = _read_password(args.password)

    async with async_session_factory() as db:
        try:
            tenant, owner = await create_tenant(
                db,
                name=args.name,
                owner_email=args.email,
                owner_password=password,
                owner_name=args.owner_name,
            )
        except EmailTakenError:
            print(f"User {args.email} already exists")
            sys.exit(1)

    print(f"Tenant created: {tenant.name} (id={tenant.id}, slug={tenant.slug})")
    print(f"Organization owner: {owner.email} (id={owner.id})")


async def cmd_create_platform_owner(args):
    from horeca.db import crud
    from horeca.db.engine import async_session_factory, create_all
    from horeca.models import User
    from horeca.services.acl import CanonicalRole
    from horeca.services.auth import hash_password

    await create_all()

    async with async_session_factory() as db:
        user = await crud.get_user_by_email(db, args.email)
        if user:
            user.is_platform_owner = True
            await db.commit()
            print(f"Existing user {user.email} promoted to platform owner")
            return

        password = _read_password(args.password)
        user = User(
            email=args.email.strip().lower(),
            name=args.name or args.email.split("@")[0],
            password_hash=hash_password(password),
            is_platform_owner=True,
        )
        db.add(user)
        await db.flush()
        await crud.assign_role(db, user, CanonicalRole.PLATFORM_OWNER.value, None)
        await db.commit()
        print(f"Platform owner created: {user.email} (id={user.id})")


def main():
    parser = argparse.ArgumentParser(description="HoReCa Ops CLI")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create all database tables")
    subparsers.add_parser("seed-roles", help="Create the canonical global roles")

    ct = subparsers.add_parser("create-tenant", help="Create a tenant with its organization owner")
    ct.add_argument("--name", required=True, help="Organization name")
    ct.add_argument("--email", required=True, help="Owner email")
    ct.add_argument("--password", default="", help="Owner password (prompted if not given)")
    ct.add_argument("--owner-name", default="", help="Owner display name")

    po = subparsers.add_parser("create-platform-owner", help="Create or promote a platform owner")
    po.add_argument("--email", required=True, help="Email")
    po.add_argument("--password", default="", help="Password (prompted if not given)")
    po.add_argument("--name", default="", help="Display name")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "init-db": cmd_init_db,
        "seed-roles": cmd_seed_roles,
        "create-tenant": cmd_create_tenant,
        "create-platform-owner": cmd_create_platform_owner,
    }
    asyncio.run(commands[args.command](args))


if __name__ == "__main__":
    main()

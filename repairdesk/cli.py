"""CLI for RepairDesk: create the schema, bootstrap users, seed the appliance catalog."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

DEFAULT_CATEGORIES = [
    ("Washing machine", "washing-machine"),
    ("Dishwasher", "dishwasher"),
    ("Refrigerator", "refrigerator"),
    ("Freezer", "freezer"),
    ("Oven", "oven"),
    ("Cooktop", "cooktop"),
    ("Range hood", "hood"),
    ("Tumble dryer", "dryer"),
    ("Air conditioner", "air-conditioner"),
    ("Water heater", "water-heater"),
]

DEFAULT_MANUFACTURERS = [
    "Beko", "Bosch", "Candy", "Electrolux", "Elica", "Gorenje",
    "Hoover", "LG", "Samsung", "Siemens", "Turbo Air", "Whirlpool",
]


async def cmd_init_db(args):
    """Create all tables."""
    from repairdesk.db.engine import create_tables

    await create_tables()
    print("Database schema created")


async def cmd_create_user(args):
    """Create a login for an admin, technician or business partner."""
    from repairdesk.db import crud
    from repairdesk.db.engine import async_session_factory, create_tables
    from repairdesk.services.auth import hash_password

    await create_tables()

    password = args.password
    if not password:
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match")
            sys.exit(1)

    if len(password) < 8:
        print("Password must be at least 8 characters")
        sys.exit(1)

    async with async_session_factory() as db:
        if await crud.get_user_by_username(db, args.username):
            print(f"User {args.username} already exists")
            sys.exit(1)

        technician_id = None
        if args.role == "technician":
            tech = await crud.create_technician(
                db, full_name=args.full_name or args.username, email=args.email, phone=args.phone,
            )
            technician_id = tech.id
            print(f"Technician profile: {tech.full_name} (id={tech.id})")

        user = await crud.create_user(
            db,
            username=args.username,
            password_hash=hash_password(password),
            role=args.role,
            full_name=args.full_name,
            email=args.email,
            phone=args.phone,
            company_name=args.company,
            technician_id=technician_id,
        )

    print(f"User created: {user.username} (id={user.id}, role={user.role})")


async def cmd_seed_catalog(args):
    """Insert the default appliance categories and manufacturers; existing names are kept."""
    from repairdesk.db import crud
    from repairdesk.db.engine import async_session_factory, create_tables

    await create_tables()

    async with async_session_factory() as db:
        for name, icon in DEFAULT_CATEGORIES:
            await crud.get_or_create_category(db, name, icon)
        for name in DEFAULT_MANUFACTURERS:
            await crud.get_or_create_manufacturer(db, name)

    print(f"Seeded {len(DEFAULT_CATEGORIES)} categories and {len(DEFAULT_MANUFACTURERS)} manufacturers")


def main():
    parser = argparse.ArgumentParser(description="RepairDesk CLI")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create database tables")

    cu = subparsers.add_parser("create-user", help="Create a user account")
    cu.add_argument("--username", required=True, help="Login name")
    cu.add_argument("--role", required=True, choices=["admin", "technician", "business_partner"])
    cu.add_argument("--password", default="", help="Password (prompted if not given)")
    cu.add_argument("--full-name", default="", help="Display name")
    cu.add_argument("--email", default="")
    cu.add_argument("--phone", default="", help="Phone number for SMS notifications")
    cu.add_argument("--company", default="", help="Company name (business partners)")

    subparsers.add_parser("seed-catalog", help="Seed appliance categories and manufacturers")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "init-db":
        asyncio.run(cmd_init_db(args))
    elif args.command == "create-user":
        asyncio.run(cmd_create_user(args))
    elif args.command == "seed-catalog":
        asyncio.run(cmd_seed_catalog(args))


if __name__ == "__main__":
    main()

"""
Administrative command line.

Usage:
    food-api init-db
    food-api create-admin --name "Ops" --email ops@example.com --password 's3cretpass'
    food-api promote --email someone@example.com
"""

import argparse
import asyncio
import logging
import sys

from food_api.core.config import get_settings, setup_logging
from food_api.core.errors import AppError
from food_api.database import async_session_maker, engine, init_db
from food_api.models import UserRole
from food_api.services.users import UserService

logger = logging.getLogger(__name__)


async def _create_admin(name: str, email: str, password: str) -> None:
    await init_db()
    async with async_session_maker() as session:
        service = UserService(session, get_settings())
        user, _ = await service.register(name, email, password, role=UserRole.ADMIN)
        print(f"Admin created: {user.id} ({user.email})")


async def _promote(email: str) -> None:
    async with async_session_maker() as session:
        user = await UserService(session, get_settings()).promote(email)
        print(f"Promoted {user.email} to admin")


async def _run(coro) -> None:
    try:
        await coro
    finally:
        await engine.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="food-api", description="Food Ordering API administration")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables")

    create = sub.add_parser("create-admin", help="Register a new admin account")
    create.add_argument("--name", required=True)
    create.add_argument("--email", required=True)
    create.add_argument("--password", required=True)

    promote = sub.add_parser("promote", help="Grant admin role to an existing account")
    promote.add_argument("--email", required=True)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    if args.command == "init-db":
        coro = init_db()
    elif args.command == "create-admin":
        coro = _create_admin(args.name, args.email, args.password)
    else:
        coro = _promote(args.email)

    try:
        asyncio.run(_run(coro))
    except AppError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

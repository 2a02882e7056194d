#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Create or update an admin-panel account.

    python scripts/create_user.py alice --role editor
    python scripts/create_user.py alice --password 'new secret'      # reset
    python scripts/create_user.py --list
"""
# -----------------------------------------------------------------------------

import argparse
import asyncio
import getpass
import sys

from fastapi import HTTPException
from pydantic import ValidationError

from docportal.core.database import create_all_tables, dispose_db, init_db, session_scope
from docportal.models import ROLES
from docportal.schemas import UserCreate, UserUpdate
from docportal.services import users as user_svc


# -----------------------------------------------------------------------------

async def _list() -> None:
    async with session_scope() as db:
        for u in await user_svc.list_users(db, limit=10_000):
            state = "active" if u.is_active else "disabled"
            print(f"  {u.username:<24} {u.role:<8} {state}")


async def _upsert(username: str, password: str, role: str | None) -> None:
    async with session_scope() as db:
        try:
            await user_svc.get_user_by_username(db, username)
        except HTTPException:
            user = await user_svc.create_user(
                db, UserCreate(username=username, password=password, role=role or "user"))
            print(f"Created {user.username} ({user.role})")
            return
        user = await user_svc.update_user(
            db, username, UserUpdate(password=password, role=role, is_active=True))
        print(f"Updated {user.username} ({user.role})")


async def run(args: argparse.Namespace) -> int:
    init_db()
    await create_all_tables()
    try:
        if args.list:
            await _list()
            return 0
        password = args.password or getpass.getpass(f"Password for {args.username}: ")
        await _upsert(args.username, password, args.role)
        return 0
    except ValidationError as exc:
        print(exc, file=sys.stderr)
        return 1
    finally:
        await dispose_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or update a DocPortal account.")
    parser.add_argument("username", nargs="?")
    parser.add_argument("--password", help="prompted for when omitted")
    parser.add_argument("--role", choices=ROLES, help="default 'user' for new accounts")
    parser.add_argument("--list", action="store_true", help="list accounts and exit")
    args = parser.parse_args()
    if not args.list and not args.username:
        parser.error("username is required unless --list is given")
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Admin User Management Script

Admin access is the ``is_admin`` flag on an account. Accounts are created on
first sign-in, so the user must have signed in once before being promoted.

Usage:
    python -m scripts.manage_admin_users list
    python -m scripts.manage_admin_users add <email>
    python -m scripts.manage_admin_users remove <email>
"""

import asyncio
import sys

from sqlalchemy import select, update

from penpal.db import AsyncSessionLocal, engine
from penpal.models.account import Account


async def list_admin_users():
    """List all admin users"""
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(Account).where(Account.is_admin.is_(True)))
        admins = result.scalars().all()

    if not admins:
        print("No admin users found.")
        return
    print("Current Admin Users:")
    print("-" * 50)
    for account in admins:
        print(f"Email: {account.email} | Account ID: {account.account_id} | Created: {account.created_at}")
    print("-" * 50)


async def set_admin(email: str, is_admin: bool) -> bool:
    """Grant or revoke admin by email"""
    async with AsyncSessionLocal() as db:
        result = await db.execute(
            update(Account).where(Account.email == email).values(is_admin=is_admin)
        )
        await db.commit()

    if result.rowcount == 0:
        print(f"User with email '{email}' not found.")
        return False
    print(f"User '{email}' admin={is_admin}.")
    return True


async def main(argv) -> int:
    try:
        if len(argv) == 2 and argv[1] == "list":
            await list_admin_users()
            return 0
        if len(argv) == 3 and argv[1] in ("add", "remove"):
            ok = await set_admin(argv[2], argv[1] == "add")
            return 0 if ok else 1
        print(__doc__)
        return 2
    finally:
        await engine.dispose()


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv)))

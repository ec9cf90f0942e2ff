"""
Database Seed Script

Creates the tables, the first admin account and the global configuration
row. Existing data is left untouched, so the script can be run repeatedly.
Run from project root: python scripts/seed.py
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from bitenet_admin.core.config import get_settings, setup_logging
from bitenet_admin.core.security import encode_password
from bitenet_admin.database import Database
from bitenet_admin.models import SysUser
from bitenet_admin.repositories import SoftDeleteRepository
from bitenet_admin.services.global_config import find_global_config, update_global_config

DEFAULT_GLOBAL_CONFIG = {
    "bonus_points_range_start": 100,
    "bonus_points_range_end": 1000,
    "push_fee_sms": 1.5,
    "push_fee_app": 1,
}


async def seed(database: Database, admin_username: str, admin_password: str) -> None:
    await database.create_all()

    async with database.session() as session:
        users = SoftDeleteRepository(session, SysUser)
        if await users.count() == 0:
            await users.create(
                name="Admin",
                username=admin_username,
                password=encode_password(admin_password),
                enabled=True,
            )
            print(f"✅ Admin account '{admin_username}' created")
        else:
            print("⏭️  Admin accounts already exist")

        if await find_global_config(session) is None:
            await update_global_config(session, DEFAULT_GLOBAL_CONFIG)
            print("✅ Global config created")
        else:
            print("⏭️  Global config already exists")

        await session.commit()


async def main(args: argparse.Namespace) -> None:
    settings = get_settings()
    database = Database(args.database_url or settings.database_url)
    try:
        await seed(database, args.username, args.password)
    finally:
        await database.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the BiteNet admin database")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--password", default="123456")
    setup_logging()
    asyncio.run(main(parser.parse_args()))

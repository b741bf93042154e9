"""Bootstrap the first admin account.

    ADMIN_PASSWORD=... python -m stocktrack.scripts.create_admin
"""

import asyncio
import os

from sqlalchemy import select, or_

from stocktrack.models.users.user_models import User
from stocktrack.models.enums.user_role import UserRole
from stocktrack.core.db import AsyncSessionLocal
from stocktrack.core.security import hash_password
from stocktrack.utils.logger import get_logger

logger = get_logger("scripts.create_admin")


async def create_admin():
    username = os.getenv("ADMIN_USERNAME", "admin")
    email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    password = os.getenv("ADMIN_PASSWORD")
    if not password:
        raise SystemExit("ADMIN_PASSWORD must be set")

    async with AsyncSessionLocal() as session:
        exists = await session.scalar(
            select(User.id).where(or_(User.username == username, User.email == email))
        )
        if exists:
            logger.warning("Admin user already exists", extra={"username": username})
            return

        session.add(
            User(
                username=username,
                email=email,
                password_hash=hash_password(password),
                first_name=os.getenv("ADMIN_FIRST_NAME", "System"),
                last_name=os.getenv("ADMIN_LAST_NAME", "Admin"),
                role=UserRole.admin.value,
                is_active=True,
            )
        )
        await session.commit()
        print("Admin user created!")


if __name__ == "__main__":
    asyncio.run(create_admin())

# storefront/scripts/create_admin.py
"""
Seed an administrator and a few sample discount codes.

    python -m storefront.scripts.create_admin admin@example.com secret
"""
import asyncio
import logging
import sys
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from storefront.core.db import AsyncSessionLocal, init_models
from storefront.core.logging_config import setup_logging
from storefront.core.security import hash_password
from storefront.models.discount_models import DiscountCode
from storefront.models.user_models import User

logger = logging.getLogger(__name__)

SAMPLE_CODES = [
    # code, percentage, days until expiry, max uses
    ("WELCOME10", 10, 90, None),
    ("SUMMER25", 25, 180, 100),
    ("FLASH50", 50, 30, 50),
]


async def create_admin(username: str, password: str, with_samples: bool = True):
    await init_models()
    async with AsyncSessionLocal() as session:
        existing = (await session.execute(select(User).where(User.username == username))).scalars().first()
        if existing:
            existing.role = "admin"
            existing.is_active = True
            logger.info("User %s already exists, promoted to admin", username)
        else:
            session.add(User(
                username=username,
                password_hash=hash_password(password),
                role="admin",
                is_active=True
            ))
            logger.info("Admin user %s created", username)

        if with_samples:
            now = datetime.now(timezone.utc)
            for code, percentage, days, max_uses in SAMPLE_CODES:
                found = (await session.execute(select(DiscountCode).where(DiscountCode.code == code))).scalars().first()
                if found:
                    continue
                session.add(DiscountCode(
                    code=code,
                    percentage=percentage,
                    active=True,
                    expires_at=now + timedelta(days=days),
                    max_uses=max_uses,
                ))
                logger.info("Sample code %s: %s%% off", code, percentage)

        await session.commit()


if __name__ == "__main__":
    setup_logging()
    if len(sys.argv) < 3:
        sys.exit("usage: python -m storefront.scripts.create_admin <email> <password>")
    asyncio.run(create_admin(sys.argv[1], sys.argv[2]))

# storefront/services/auth_service.py
from datetime import datetime, timedelta, timezone
from typing import Dict
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
import logging

from storefront.models.user_models import User, RefreshToken
from storefront.core.security import (
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from storefront.core.config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ADMIN_ACCESS_TOKEN_EXPIRE_MINUTES,
)

logger = logging.getLogger(__name__)


def _access_minutes(user: User) -> int:
    return ADMIN_ACCESS_TOKEN_EXPIRE_MINUTES if user.role == "admin" else ACCESS_TOKEN_EXPIRE_MINUTES


async def authenticate_user(db: AsyncSession, username: str, password: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive.")
    return user


async def create_tokens(db: AsyncSession, user: User):
    """
    Create new access and refresh tokens.
    Includes token_version to support immediate logout invalidation.
    """
    access_token = create_access_token(
        {"sub": user.username, "user_id": user.id, "role": user.role},
        token_version=user.token_version,
        expires_delta=timedelta(minutes=_access_minutes(user)),
    )

    refresh_token = create_refresh_token({"sub": user.username, "user_id": user.id})

    db.add(RefreshToken(user_id=user.id, token=refresh_token))
    user.last_login = datetime.now(timezone.utc)
    await db.commit()

    return access_token, refresh_token


async def refresh_access_token(db: AsyncSession, old_refresh_token: str) -> Dict:
    """
    Rotate refresh token: must find the DB record and ensure it is not revoked.
    Marks old token revoked and issues a new refresh token record.
    """
    try:
        payload = decode_token(old_refresh_token)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    if payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type"
        )

    result = await db.execute(
        select(RefreshToken).where(RefreshToken.token == old_refresh_token)
    )
    db_token = result.scalars().first()

    if not db_token or db_token.revoked:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or reused refresh token",
        )

    user = db_token.user
    db_token.revoked = True

    new_access_token = create_access_token(
        {"sub": user.username, "user_id": user.id, "role": user.role},
        token_version=user.token_version,
        expires_delta=timedelta(minutes=_access_minutes(user)),
    )
    new_refresh_token = create_refresh_token({"sub": user.username, "user_id": user.id})

    db.add(RefreshToken(user_id=user.id, token=new_refresh_token))
    await db.commit()

    return {
        "access_token": new_access_token,
        "refresh_token": new_refresh_token,
        "token_type": "bearer",
    }


async def logout_user(db: AsyncSession, user: User):
    user.token_version += 1

    await db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user.id)
        .values(revoked=True)
    )
    await db.commit()

    return {"msg": "Logged out successfully"}

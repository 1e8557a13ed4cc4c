# storefront/routers/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.core.db import get_db
from storefront.schemas.user_schemas import UserLogin, TokenResponse, RefreshRequest, MessageResponse, UserOut
from storefront.services.auth_service import authenticate_user, create_tokens, refresh_access_token, logout_user
from storefront.utils.get_user import get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])

@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await authenticate_user(db, data.username, data.password)
    access_token, refresh_token = await create_tokens(db, user)
    return TokenResponse(access_token=access_token, refresh_token=refresh_token)

@router.post("/refresh", response_model=TokenResponse)
async def refresh_token_endpoint(data: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """
    Exchange a refresh token for a new access token.
    """
    return TokenResponse(**await refresh_access_token(db, data.refresh_token))

@router.post("/logout", response_model=MessageResponse)
async def logout(db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    """
    Logs out the user everywhere: bumps token_version and revokes refresh tokens.
    """
    return await logout_user(db, current_user)

@router.get("/me", response_model=UserOut)
async def me(current_user = Depends(get_current_user)):
    return current_user

"""Auth endpoints: register, login, refresh, logout, change password."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.api.deps import get_current_user, get_db
from fragmento.models.user import User
from fragmento.schemas.password import ChangePasswordRequest
from fragmento.schemas.user import LoginRequest, Token, TokenRefresh, UserBrief, UserCreate
from fragmento.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def _token_response(db: AsyncSession, user: User) -> Token:
    access_token, refresh_token = await auth_service.create_tokens_for_user(db, user)
    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserBrief.model_validate(user),
    )


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    user = await auth_service.register(db, data)
    token = await _token_response(db, user)
    await db.commit()
    return token


@router.post("/login", response_model=Token)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await auth_service.authenticate(db, data.login, data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username/email or password",
        )
    token = await _token_response(db, user)
    await db.commit()
    logger.info("Login success: %s", user.username)
    return token


@router.post("/refresh", response_model=Token)
async def refresh_token(
    body: TokenRefresh,
    db: AsyncSession = Depends(get_db),
):
    user, access_token, new_refresh = await auth_service.rotate_refresh_token(db, body.refresh_token)
    await db.commit()
    return Token(
        access_token=access_token,
        refresh_token=new_refresh,
        user=UserBrief.model_validate(user),
    )


@router.post("/logout")
async def logout(
    body: TokenRefresh,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    revoked = await auth_service.revoke_refresh_token(db, body.refresh_token, current_user.id)
    await db.commit()
    return {"revoked": revoked}


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.change_password(db, current_user, data.current_password, data.new_password)
    await db.commit()
    return {"message": "Password changed successfully"}

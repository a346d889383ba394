"""Authentication business logic: accounts, passwords and refresh tokens."""
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.core.config import settings
from fragmento.core.exceptions import Conflict, Forbidden, ValidationFailed
from fragmento.core.security import (
    create_access_token,
    generate_refresh_token,
    get_password_hash,
    is_password_strong,
    verify_password,
)
from fragmento.models.token import RefreshToken
from fragmento.models.user import User
from fragmento.schemas.user import UserCreate

logger = logging.getLogger(__name__)

WEAK_PASSWORD_MESSAGE = (
    "Password must be at least 8 characters and contain uppercase, lowercase, "
    "number and special character"
)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> User | None:
    return await db.get(User, user_id)


async def register(db: AsyncSession, data: UserCreate | Mapping) -> User:
    """Create an account. Raises Conflict when the username or email is taken."""
    if not isinstance(data, UserCreate):
        try:
            data = UserCreate.model_validate(dict(data))
        except ValidationError as exc:
            raise ValidationFailed.from_pydantic(exc)
    if not is_password_strong(data.password):
        raise ValidationFailed(WEAK_PASSWORD_MESSAGE)
    email = data.email.lower()
    if await get_user_by_email(db, email):
        raise Conflict("Email already registered")
    if await get_user_by_username(db, data.username):
        raise Conflict("Username already taken")

    user = User(
        username=data.username,
        email=email,
        password_hash=get_password_hash(data.password),
    )
    try:
        async with db.begin_nested():
            db.add(user)
    except IntegrityError:
        # Lost a race against a concurrent registration
        logger.info("Registration for %s hit a unique constraint", data.username)
        raise Conflict("Username or email already taken")
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user


async def authenticate(db: AsyncSession, login: str, password: str) -> User | None:
    """Look the user up by username or email and check the password."""
    result = await db.execute(
        select(User).where(or_(User.username == login, User.email == login.lower()))
    )
    user = result.scalars().first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", login)
        return None
    user.last_active = datetime.utcnow()
    await db.flush()
    return user


async def issue_refresh_token(db: AsyncSession, user: User) -> str:
    token = RefreshToken(
        token=generate_refresh_token(),
        user_id=user.id,
        expiry_date=datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )
    db.add(token)
    await db.flush()
    return token.token


async def create_tokens_for_user(db: AsyncSession, user: User) -> tuple[str, str]:
    return create_access_token(user.id), await issue_refresh_token(db, user)


async def _get_refresh_token(db: AsyncSession, value: str) -> RefreshToken | None:
    result = await db.execute(select(RefreshToken).where(RefreshToken.token == value))
    return result.scalar_one_or_none()


async def rotate_refresh_token(db: AsyncSession, value: str) -> tuple[User, str, str]:
    """Revoke ``value`` and hand out a fresh access/refresh pair."""
    stored = await _get_refresh_token(db, value)
    if stored is None or not stored.is_active():
        raise Forbidden("Invalid or expired refresh token")
    user = await db.get(User, stored.user_id)
    if user is None:
        raise Forbidden("Invalid or expired refresh token")
    stored.is_revoked = True
    access_token, refresh_token = await create_tokens_for_user(db, user)
    logger.info("Rotated refresh token for user %s", user.id)
    return user, access_token, refresh_token


async def revoke_refresh_token(db: AsyncSession, value: str, user_id: UUID | None = None) -> bool:
    stored = await _get_refresh_token(db, value)
    if stored is None or stored.is_revoked:
        return False
    if user_id is not None and stored.user_id != user_id:
        raise Forbidden("Refresh token does not belong to you")
    stored.is_revoked = True
    await db.flush()
    return True


async def revoke_all_refresh_tokens(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False))
        .values(is_revoked=True)
    )
    return result.rowcount or 0


async def change_password(db: AsyncSession, user: User, current_password: str, new_password: str) -> None:
    """Replace the password and sign the user out everywhere."""
    if not verify_password(current_password, user.password_hash):
        raise Forbidden("Current password is incorrect")
    if not is_password_strong(new_password):
        raise ValidationFailed(WEAK_PASSWORD_MESSAGE)
    user.password_hash = get_password_hash(new_password)
    revoked = await revoke_all_refresh_tokens(db, user.id)
    await db.flush()
    logger.info("User %s changed password, %d refresh tokens revoked", user.id, revoked)

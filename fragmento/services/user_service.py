"""Profiles, profile edits and user search."""
import logging
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.core.exceptions import NotFound
from fragmento.models.user import SignatureFragrance, SignatureNote, User
from fragmento.schemas.fragrance import SignatureFragranceIn, SignatureFragranceResponse
from fragmento.schemas.user import UserProfileResponse, UserSearchResult, UserStats, UserUpdate
from fragmento.services import follow_service, post_service
from fragmento.services.auth_service import get_user_by_username

logger = logging.getLogger(__name__)


async def get_user_or_404(db: AsyncSession, username: str) -> User:
    user = await get_user_by_username(db, username)
    if user is None:
        raise NotFound("User not found")
    return user


async def get_stats(db: AsyncSession, user_id: UUID) -> UserStats:
    followers, following = await follow_service.get_follow_counts(db, user_id)
    return UserStats(
        posts_count=await post_service.count_by_author(db, user_id),
        followers_count=followers,
        following_count=following,
    )


async def profile_to_response(db: AsyncSession, user: User, viewer: User | None = None) -> UserProfileResponse:
    is_current_user = viewer is not None and viewer.id == user.id
    is_following = False
    if viewer is not None and not is_current_user:
        is_following = await follow_service.is_following(db, viewer.id, user.id)
    signature = await get_signature(db, user.id)
    return UserProfileResponse(
        id=user.id,
        username=user.username,
        email=user.email if is_current_user else None,
        bio=user.bio or "",
        profile_picture_url=user.profile_picture_url or "",
        cover_picture_url=user.cover_picture_url or "",
        created_at=user.created_at,
        last_active=user.last_active,
        is_following=is_following,
        is_current_user=is_current_user,
        stats=await get_stats(db, user.id),
        signature_fragrance=SignatureFragranceResponse.model_validate(signature) if signature else None,
    )


async def get_signature(db: AsyncSession, user_id: UUID) -> SignatureFragrance | None:
    result = await db.execute(
        select(SignatureFragrance)
        .where(SignatureFragrance.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_profile(db: AsyncSession, username: str, viewer: User | None = None) -> UserProfileResponse:
    return await profile_to_response(db, await get_user_or_404(db, username), viewer)


def _build_signature(data: SignatureFragranceIn) -> SignatureFragrance:
    return SignatureFragrance(
        name=data.name.strip(),
        brand=data.brand.strip(),
        category=data.category,
        description=data.description,
        photo_url=data.photo_url,
        notes=[
            SignatureNote(name=note.name.strip(), category=note.category, order=i)
            for i, note in enumerate(data.notes)
        ],
    )


async def update_profile(db: AsyncSession, user: User, data: UserUpdate) -> User:
    if data.bio is not None:
        user.bio = data.bio
    if data.profile_picture_url is not None:
        user.profile_picture_url = data.profile_picture_url
    if data.cover_picture_url is not None:
        user.cover_picture_url = data.cover_picture_url

    if data.remove_signature_fragrance or data.signature_fragrance is not None:
        current = await get_signature(db, user.id)
        if current is not None:
            # One signature per user: the old row must be gone before the new insert
            await db.delete(current)
            await db.flush()
        if data.signature_fragrance is not None and not data.remove_signature_fragrance:
            signature = _build_signature(data.signature_fragrance)
            signature.user_id = user.id
            db.add(signature)
    await db.flush()
    logger.info("User %s updated profile", user.id)
    return user


async def search_users(
    db: AsyncSession,
    query: str,
    viewer_id: UUID | None = None,
    limit: int = 10,
) -> list[UserSearchResult]:
    """Users whose username contains ``query``; prefix matches first, then by username."""
    term = query.strip().lower()
    if not term:
        return []
    username = func.lower(User.username)
    stmt = (
        select(User)
        .where(username.contains(term, autoescape=True))
        .order_by(
            case((username.startswith(term, autoescape=True), 0), else_=1),
            User.username,
        )
        .limit(limit)
    )
    result = await db.execute(stmt)
    users = list(result.scalars().all())
    followed: set[UUID] = set()
    if viewer_id is not None:
        followed = await follow_service.following_ids_among(db, viewer_id, [u.id for u in users])
    return [
        UserSearchResult(
            id=u.id,
            username=u.username,
            profile_picture_url=u.profile_picture_url or "",
            bio=u.bio or "",
            is_following=u.id in followed,
        )
        for u in users
    ]


async def suggest_usernames(db: AsyncSession, prefix: str, limit: int = 5) -> list[str]:
    term = prefix.strip().lower()
    if not term:
        return []
    result = await db.execute(
        select(User.username)
        .where(func.lower(User.username).startswith(term, autoescape=True))
        .order_by(User.username)
        .limit(limit)
    )
    return [row[0] for row in result.all()]

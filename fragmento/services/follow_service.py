"""Social graph: directed follow edges between users."""
import logging
from uuid import UUID

from sqlalchemy import delete, desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.core.exceptions import Conflict, InvalidOperation, NotFound
from fragmento.models.engagement import Follow
from fragmento.models.user import User
from fragmento.schemas.notification import NotificationContent
from fragmento.schemas.pagination import Page
from fragmento.schemas.user import FollowListItem
from fragmento.services import notification_service
from fragmento.services.pagination import PageRequest, build_page, fetch_page

logger = logging.getLogger(__name__)


async def follow(db: AsyncSession, follower_id: UUID, target_id: UUID) -> Follow:
    """Create the edge follower -> target and notify the target.

    Raises Conflict when the edge already exists; callers that want
    idempotency can treat that as success.
    """
    if follower_id == target_id:
        raise InvalidOperation("You cannot follow yourself")
    if await db.get(User, target_id) is None:
        raise NotFound("User not found")
    edge = Follow(follower_id=follower_id, following_id=target_id)
    try:
        async with db.begin_nested():
            db.add(edge)
    except IntegrityError:
        # Only the unique edge constraint means "already following"
        if not await is_following(db, follower_id, target_id):
            raise
        logger.info("User %s already follows %s", follower_id, target_id)
        raise Conflict("You are already following this user")
    logger.info("User %s followed %s", follower_id, target_id)
    await notification_service.emit(
        db,
        "follow",
        recipient_id=target_id,
        actor_id=follower_id,
        content=NotificationContent(action="followed you"),
    )
    return edge


async def unfollow(db: AsyncSession, follower_id: UUID, target_id: UUID) -> bool:
    """Remove the edge if present. Returns False when there was nothing to remove."""
    result = await db.execute(
        delete(Follow).where(Follow.follower_id == follower_id, Follow.following_id == target_id)
    )
    removed = (result.rowcount or 0) > 0
    if removed:
        logger.info("User %s unfollowed %s", follower_id, target_id)
    return removed


async def remove_follower(db: AsyncSession, user_id: UUID, follower_id: UUID) -> bool:
    """Drop an incoming edge follower -> user."""
    return await unfollow(db, follower_id, user_id)


async def is_following(db: AsyncSession, follower_id: UUID, following_id: UUID) -> bool:
    result = await db.execute(
        select(Follow.id).where(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id,
        )
    )
    return result.first() is not None


async def following_ids_among(db: AsyncSession, follower_id: UUID, user_ids: list[UUID]) -> set[UUID]:
    """Return the subset of ``user_ids`` that ``follower_id`` follows."""
    if not user_ids:
        return set()
    result = await db.execute(
        select(Follow.following_id).where(
            Follow.follower_id == follower_id,
            Follow.following_id.in_(user_ids),
        )
    )
    return {row[0] for row in result.all()}


def following_ids_subquery(follower_id: UUID):
    return select(Follow.following_id).where(Follow.follower_id == follower_id)


async def get_follow_counts(db: AsyncSession, user_id: UUID) -> tuple[int, int]:
    """Return (followers, following) for a user, counted from the edge table."""
    followers = await db.execute(select(func.count(Follow.id)).where(Follow.following_id == user_id))
    following = await db.execute(select(func.count(Follow.id)).where(Follow.follower_id == user_id))
    return followers.scalar() or 0, following.scalar() or 0


async def _list_edges(
    db: AsyncSession,
    req: PageRequest,
    *,
    edge_filter,
    other_side,
    viewer_id: UUID | None,
) -> Page[FollowListItem]:
    stmt = (
        select(User, Follow.followed_at)
        .join(Follow, other_side == User.id)
        .where(edge_filter)
        .order_by(desc(Follow.followed_at), desc(Follow.id))
    )
    rows, total = await fetch_page(db, stmt, req)
    followed = set()
    if viewer_id is not None:
        followed = await following_ids_among(db, viewer_id, [user.id for user, _ in rows])
    items = [
        FollowListItem(
            id=user.id,
            username=user.username,
            profile_picture_url=user.profile_picture_url or "",
            followed_at=followed_at,
            is_following=user.id in followed,
        )
        for user, followed_at in rows
    ]
    return build_page(items, total, req)


async def list_followers(
    db: AsyncSession, user_id: UUID, req: PageRequest, viewer_id: UUID | None = None
) -> Page[FollowListItem]:
    """Users following ``user_id``, most recent first."""
    return await _list_edges(
        db, req, edge_filter=Follow.following_id == user_id, other_side=Follow.follower_id, viewer_id=viewer_id
    )


async def list_following(
    db: AsyncSession, user_id: UUID, req: PageRequest, viewer_id: UUID | None = None
) -> Page[FollowListItem]:
    """Users ``user_id`` follows, most recent first."""
    return await _list_edges(
        db, req, edge_filter=Follow.follower_id == user_id, other_side=Follow.following_id, viewer_id=viewer_id
    )

"""Interaction ledger: likes on posts and comments, saved posts.

Likes and saves are set membership: a row exists or it does not. Inserts go
through a savepoint so a concurrent duplicate hits the unique constraint and
is reported as "already there" instead of an error. Counts are never stored;
readers count rows.
"""
import logging
from typing import Literal
from uuid import UUID

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.core.exceptions import NotFound, ValidationFailed
from fragmento.models.comment import Comment
from fragmento.models.engagement import CommentLike, PostLike, SavedPost
from fragmento.models.fragrance import Fragrance
from fragmento.models.post import Post
from fragmento.schemas.notification import NotificationContent
from fragmento.services import notification_service

logger = logging.getLogger(__name__)

SubjectKind = Literal["post", "comment"]
SUBJECT_KINDS = ("post", "comment")


async def _insert_once(db: AsyncSession, row, existing: Select) -> bool:
    """Add ``row``; return False if ``existing`` finds the row already there.

    Any other integrity failure, such as an unknown user, propagates.
    """
    try:
        async with db.begin_nested():
            db.add(row)
    except IntegrityError:
        if (await db.execute(existing)).first() is None:
            raise
        return False
    return True


async def _post_title(db: AsyncSession, post_id: UUID) -> str:
    result = await db.execute(select(Fragrance.name).where(Fragrance.post_id == post_id))
    return result.scalar_one_or_none() or "a post"


def _check_kind(subject_kind: str) -> None:
    if subject_kind not in SUBJECT_KINDS:
        raise ValidationFailed(f"Unknown subject kind: {subject_kind}")


async def like(db: AsyncSession, subject_kind: SubjectKind, subject_id: UUID, user_id: UUID) -> bool:
    """Like a post or comment. Returns True if a new like row was created."""
    _check_kind(subject_kind)
    if subject_kind == "post":
        post = await db.get(Post, subject_id)
        if post is None:
            raise NotFound("Post not found")
        created = await _insert_once(
            db,
            PostLike(post_id=subject_id, user_id=user_id),
            select(PostLike.id).where(PostLike.post_id == subject_id, PostLike.user_id == user_id),
        )
        if not created:
            logger.debug("User %s already liked post %s", user_id, subject_id)
            return False
        logger.info("User %s liked post %s", user_id, subject_id)
        await notification_service.emit(
            db,
            "like",
            recipient_id=post.user_id,
            actor_id=user_id,
            post_id=post.id,
            content=NotificationContent(action="liked your post", post_title=await _post_title(db, post.id)),
        )
        return True

    comment = await db.get(Comment, subject_id)
    if comment is None:
        raise NotFound("Comment not found")
    created = await _insert_once(
        db,
        CommentLike(comment_id=subject_id, user_id=user_id),
        select(CommentLike.id).where(CommentLike.comment_id == subject_id, CommentLike.user_id == user_id),
    )
    if not created:
        logger.debug("User %s already liked comment %s", user_id, subject_id)
        return False
    logger.info("User %s liked comment %s", user_id, subject_id)
    await notification_service.emit(
        db,
        "like",
        recipient_id=comment.user_id,
        actor_id=user_id,
        post_id=comment.post_id,
        comment_id=comment.id,
        content=NotificationContent(
            action="liked your comment",
            post_title=await _post_title(db, comment.post_id),
            comment_text=notification_service.excerpt(comment.text),
        ),
    )
    return True


async def unlike(db: AsyncSession, subject_kind: SubjectKind, subject_id: UUID, user_id: UUID) -> bool:
    """Remove a like. Returns False (not an error) when there was none."""
    _check_kind(subject_kind)
    if subject_kind == "post":
        stmt = delete(PostLike).where(PostLike.post_id == subject_id, PostLike.user_id == user_id)
    else:
        stmt = delete(CommentLike).where(CommentLike.comment_id == subject_id, CommentLike.user_id == user_id)
    result = await db.execute(stmt)
    removed = (result.rowcount or 0) > 0
    if removed:
        logger.info("User %s unliked %s %s", user_id, subject_kind, subject_id)
    return removed


async def save(db: AsyncSession, post_id: UUID, user_id: UUID) -> bool:
    """Bookmark a post. Returns True if a new saved row was created."""
    if await db.get(Post, post_id) is None:
        raise NotFound("Post not found")
    created = await _insert_once(
        db,
        SavedPost(post_id=post_id, user_id=user_id),
        select(SavedPost.id).where(SavedPost.post_id == post_id, SavedPost.user_id == user_id),
    )
    if created:
        logger.info("User %s saved post %s", user_id, post_id)
    return created


async def unsave(db: AsyncSession, post_id: UUID, user_id: UUID) -> bool:
    result = await db.execute(
        delete(SavedPost).where(SavedPost.post_id == post_id, SavedPost.user_id == user_id)
    )
    return (result.rowcount or 0) > 0


async def is_liked(db: AsyncSession, subject_kind: SubjectKind, subject_id: UUID, user_id: UUID) -> bool:
    _check_kind(subject_kind)
    if subject_kind == "post":
        return bool(await liked_post_ids(db, user_id, [subject_id]))
    return bool(await liked_comment_ids(db, user_id, [subject_id]))


async def is_saved(db: AsyncSession, post_id: UUID, user_id: UUID) -> bool:
    return bool(await saved_post_ids(db, user_id, [post_id]))


async def liked_post_ids(db: AsyncSession, user_id: UUID, post_ids: list[UUID]) -> set[UUID]:
    """Return set of post IDs that the user has liked."""
    if not post_ids:
        return set()
    result = await db.execute(
        select(PostLike.post_id).where(PostLike.user_id == user_id, PostLike.post_id.in_(post_ids))
    )
    return {row[0] for row in result.all()}


async def saved_post_ids(db: AsyncSession, user_id: UUID, post_ids: list[UUID]) -> set[UUID]:
    if not post_ids:
        return set()
    result = await db.execute(
        select(SavedPost.post_id).where(SavedPost.user_id == user_id, SavedPost.post_id.in_(post_ids))
    )
    return {row[0] for row in result.all()}


async def liked_comment_ids(db: AsyncSession, user_id: UUID, comment_ids: list[UUID]) -> set[UUID]:
    if not comment_ids:
        return set()
    result = await db.execute(
        select(CommentLike.comment_id).where(
            CommentLike.user_id == user_id,
            CommentLike.comment_id.in_(comment_ids),
        )
    )
    return {row[0] for row in result.all()}


async def count_likes(db: AsyncSession, subject_kind: SubjectKind, subject_id: UUID) -> int:
    _check_kind(subject_kind)
    if subject_kind == "post":
        stmt = select(func.count(PostLike.id)).where(PostLike.post_id == subject_id)
    else:
        stmt = select(func.count(CommentLike.id)).where(CommentLike.comment_id == subject_id)
    result = await db.execute(stmt)
    return result.scalar() or 0

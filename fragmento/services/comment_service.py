"""Comment tree: threaded comments under a post."""
import logging
import uuid
from datetime import datetime
from uuid import UUID

from sqlalchemy import asc, delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from fragmento.core.config import settings
from fragmento.core.exceptions import Conflict, Forbidden, InvalidOperation, NotFound, ValidationFailed
from fragmento.models.comment import Comment
from fragmento.models.engagement import CommentLike
from fragmento.models.notification import Notification
from fragmento.models.post import Post
from fragmento.schemas.comment import CommentResponse
from fragmento.schemas.notification import NotificationContent
from fragmento.schemas.pagination import Page
from fragmento.schemas.user import UserBrief
from fragmento.services import interaction_service, notification_service
from fragmento.services.pagination import PageRequest, build_page, fetch_page

logger = logging.getLogger(__name__)

SORT_FIELDS = ("created_at", "likes")
MAX_TEXT_LENGTH = 1000


def _likes_count():
    return (
        select(func.count(CommentLike.id))
        .where(CommentLike.comment_id == Comment.id)
        .correlate(Comment)
        .scalar_subquery()
    )


def _replies_count():
    reply = aliased(Comment)
    return (
        select(func.count(reply.id))
        .where(reply.parent_comment_id == Comment.id)
        .correlate(Comment)
        .scalar_subquery()
    )


def _comment_rows():
    return select(
        Comment,
        _likes_count().label("likes_count"),
        _replies_count().label("replies_count"),
    ).execution_options(populate_existing=True)


def _ordering(sort: str, descending: bool) -> list:
    if sort not in SORT_FIELDS:
        raise ValidationFailed(f"Cannot sort comments by {sort!r}")
    direction = desc if descending else asc
    keys = [Comment.created_at, Comment.id]
    if sort == "likes":
        keys.insert(0, _likes_count())
    return [direction(key) for key in keys]


def _clean_text(text: str | None) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationFailed("Comment text cannot be empty")
    if len(cleaned) > MAX_TEXT_LENGTH:
        raise ValidationFailed(f"Comment text cannot exceed {MAX_TEXT_LENGTH} characters")
    return cleaned


async def _load_owned_comment(db: AsyncSession, comment_id: UUID, actor_id: UUID) -> Comment:
    comment = await db.get(Comment, comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    if comment.user_id != actor_id:
        logger.warning("User %s tried to modify comment %s owned by %s", actor_id, comment_id, comment.user_id)
        raise Forbidden("You can only modify your own comments")
    return comment


async def _ensure_acyclic(db: AsyncSession, new_id: UUID, parent: Comment) -> None:
    """Walk up from ``parent`` and fail if the chain loops or reaches ``new_id``."""
    seen: set[UUID] = set()
    current: Comment | None = parent
    while current is not None:
        if current.id == new_id or current.id in seen:
            raise InvalidOperation("Reply would create a cycle in the comment thread")
        seen.add(current.id)
        if current.parent_comment_id is None:
            return
        current = await db.get(Comment, current.parent_comment_id)


async def add_comment(
    db: AsyncSession,
    post_id: UUID,
    author_id: UUID,
    text: str,
    parent_id: UUID | None = None,
) -> Comment:
    """Add a comment or reply and notify the people it concerns."""
    cleaned = _clean_text(text)
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFound("Post not found")

    parent = None
    comment_id = uuid.uuid4()
    if parent_id is not None:
        parent = await db.get(Comment, parent_id)
        if parent is None:
            raise NotFound("Parent comment not found")
        if parent.post_id != post_id:
            raise InvalidOperation("Parent comment belongs to a different post")
        await _ensure_acyclic(db, comment_id, parent)

    comment = Comment(
        id=comment_id,
        post_id=post_id,
        user_id=author_id,
        parent_comment_id=parent_id,
        text=cleaned,
    )
    async with db.begin_nested():
        db.add(comment)
    logger.info("User %s commented %s on post %s", author_id, comment.id, post_id)

    post_title = post.fragrance.name if post.fragrance else None
    comment_text = notification_service.excerpt(cleaned)
    if parent is None:
        action = "commented on your post"
    elif parent.user_id == post.user_id:
        action = "replied to your comment"
    else:
        action = "replied to a comment on your post"
    await notification_service.emit(
        db,
        "comment",
        recipient_id=post.user_id,
        actor_id=author_id,
        post_id=post_id,
        comment_id=comment.id,
        content=NotificationContent(action=action, post_title=post_title, comment_text=comment_text),
    )
    if parent is not None and parent.user_id not in (post.user_id, author_id):
        await notification_service.emit(
            db,
            "mention",
            recipient_id=parent.user_id,
            actor_id=author_id,
            post_id=post_id,
            comment_id=comment.id,
            content=NotificationContent(
                action="replied to your comment", post_title=post_title, comment_text=comment_text
            ),
        )
    return comment


async def update_comment(db: AsyncSession, comment_id: UUID, actor_id: UUID, text: str) -> Comment:
    cleaned = _clean_text(text)
    comment = await _load_owned_comment(db, comment_id, actor_id)
    comment.text = cleaned
    comment.updated_at = datetime.utcnow()
    await db.flush()
    logger.info("User %s edited comment %s", actor_id, comment_id)
    return comment


async def delete_comment(db: AsyncSession, comment_id: UUID, actor_id: UUID) -> None:
    """Delete a leaf comment with its likes and notifications.

    A comment that still has replies cannot be deleted.
    """
    comment = await _load_owned_comment(db, comment_id, actor_id)
    replies = await db.execute(select(Comment.id).where(Comment.parent_comment_id == comment_id).limit(1))
    if replies.first() is not None:
        raise Conflict("Cannot delete a comment that has replies")
    async with db.begin_nested():
        await db.execute(delete(Notification).where(Notification.comment_id == comment_id))
        await db.execute(delete(CommentLike).where(CommentLike.comment_id == comment_id))
        await db.delete(comment)
    logger.info("User %s deleted comment %s", actor_id, comment_id)


def _to_response(row, viewer_id: UUID | None, liked: set[UUID], replies: list[CommentResponse]) -> CommentResponse:
    comment = row[0]
    own = viewer_id is not None and comment.user_id == viewer_id
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        parent_comment_id=comment.parent_comment_id,
        user=UserBrief.model_validate(comment.user) if comment.user else None,
        text=comment.text,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        likes_count=row[1] or 0,
        replies_count=row[2] or 0,
        is_liked=comment.id in liked,
        can_edit=own,
        can_delete=own,
        replies=replies,
    )


async def _rows_to_responses(
    db: AsyncSession,
    rows: list,
    viewer_id: UUID | None,
    previews: dict[UUID, list] | None = None,
) -> list[CommentResponse]:
    previews = previews or {}
    ids = [row[0].id for row in rows]
    ids.extend(reply[0].id for batch in previews.values() for reply in batch)
    liked: set[UUID] = set()
    if viewer_id is not None:
        liked = await interaction_service.liked_comment_ids(db, viewer_id, ids)
    return [
        _to_response(
            row,
            viewer_id,
            liked,
            [_to_response(reply, viewer_id, liked, []) for reply in previews.get(row[0].id, [])],
        )
        for row in rows
    ]


async def _reply_previews(db: AsyncSession, parent_ids: list[UUID]) -> dict[UUID, list]:
    """Newest replies per parent, at most ``REPLY_PREVIEW_COUNT`` each."""
    if not parent_ids or settings.REPLY_PREVIEW_COUNT <= 0:
        return {}
    ranked = (
        select(
            Comment.id.label("id"),
            func.row_number()
            .over(
                partition_by=Comment.parent_comment_id,
                order_by=(desc(Comment.created_at), desc(Comment.id)),
            )
            .label("position"),
        )
        .where(Comment.parent_comment_id.in_(parent_ids))
        .subquery()
    )
    stmt = (
        _comment_rows()
        .join(ranked, ranked.c.id == Comment.id)
        .where(ranked.c.position <= settings.REPLY_PREVIEW_COUNT)
        .order_by(ranked.c.position)
    )
    result = await db.execute(stmt)
    previews: dict[UUID, list] = {}
    for row in result.all():
        previews.setdefault(row[0].parent_comment_id, []).append(row)
    return previews


async def get_comment(db: AsyncSession, comment_id: UUID, viewer_id: UUID | None = None) -> CommentResponse:
    result = await db.execute(_comment_rows().where(Comment.id == comment_id))
    row = result.first()
    if row is None:
        raise NotFound("Comment not found")
    return (await _rows_to_responses(db, [row], viewer_id))[0]


async def list_top_level(
    db: AsyncSession,
    post_id: UUID,
    req: PageRequest,
    *,
    sort: str = "created_at",
    descending: bool = True,
    viewer_id: UUID | None = None,
) -> Page[CommentResponse]:
    """Root comments of a post, each with a preview of its newest replies."""
    if await db.get(Post, post_id) is None:
        raise NotFound("Post not found")
    stmt = (
        _comment_rows()
        .where(Comment.post_id == post_id, Comment.parent_comment_id.is_(None))
        .order_by(*_ordering(sort, descending))
    )
    rows, total = await fetch_page(db, stmt, req)
    previews = await _reply_previews(db, [row[0].id for row in rows if row[2]])
    return build_page(await _rows_to_responses(db, rows, viewer_id, previews), total, req)


async def list_replies(
    db: AsyncSession,
    comment_id: UUID,
    req: PageRequest,
    *,
    sort: str = "created_at",
    descending: bool = True,
    viewer_id: UUID | None = None,
) -> Page[CommentResponse]:
    """Direct replies of one comment."""
    if await db.get(Comment, comment_id) is None:
        raise NotFound("Comment not found")
    stmt = (
        _comment_rows()
        .where(Comment.parent_comment_id == comment_id)
        .order_by(*_ordering(sort, descending))
    )
    rows, total = await fetch_page(db, stmt, req)
    return build_page(await _rows_to_responses(db, rows, viewer_id), total, req)


async def count_for_post(db: AsyncSession, post_id: UUID) -> int:
    result = await db.execute(select(func.count(Comment.id)).where(Comment.post_id == post_id))
    return result.scalar() or 0

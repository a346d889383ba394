"""Notification creation and queries.

Notifications are a side-effect of follows, likes and comments. ``emit`` never
raises: a failure is logged and the triggering mutation carries on.
"""
import logging
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.core.config import settings
from fragmento.core.exceptions import Forbidden, NotFound, ValidationFailed
from fragmento.models.notification import NOTIFICATION_TYPES, Notification
from fragmento.schemas.notification import NotificationContent, NotificationCounts, NotificationResponse
from fragmento.schemas.pagination import Page
from fragmento.schemas.user import UserBrief
from fragmento.services.pagination import PageRequest, build_page, fetch_page

logger = logging.getLogger(__name__)


def excerpt(text: str, limit: int | None = None) -> str:
    limit = limit or settings.COMMENT_EXCERPT_LENGTH
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def serialize_content(content: NotificationContent) -> str:
    return content.model_dump_json()


def deserialize_content(raw: str | None) -> NotificationContent:
    """Parse a stored payload; unreadable payloads come back empty."""
    if not raw:
        return NotificationContent()
    try:
        return NotificationContent.model_validate_json(raw)
    except ValidationError:
        logger.warning("Discarding unreadable notification payload: %.80r", raw)
        return NotificationContent()


async def _find_unread_duplicate(
    db: AsyncSession,
    *,
    notification_type: str,
    recipient_id: UUID,
    actor_id: UUID,
    post_id: UUID | None,
    comment_id: UUID | None,
) -> Notification | None:
    result = await db.execute(
        select(Notification)
        .where(
            Notification.user_id == recipient_id,
            Notification.actor_id == actor_id,
            Notification.type == notification_type,
            Notification.post_id.is_(None) if post_id is None else Notification.post_id == post_id,
            Notification.comment_id.is_(None) if comment_id is None else Notification.comment_id == comment_id,
            Notification.is_read.is_(False),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def emit(
    db: AsyncSession,
    notification_type: str,
    *,
    recipient_id: UUID,
    actor_id: UUID,
    post_id: UUID | None = None,
    comment_id: UUID | None = None,
    content: NotificationContent | None = None,
) -> Notification | None:
    """Create a notification for ``recipient_id``.

    Returns None when the actor is the recipient, when an identical unread
    notification already exists, or when storing it failed.
    """
    if recipient_id == actor_id:
        logger.debug("Skipping self-notification for user %s", actor_id)
        return None
    if notification_type not in NOTIFICATION_TYPES:
        logger.error("Unknown notification type %r, not emitted", notification_type)
        return None
    try:
        async with db.begin_nested():
            duplicate = await _find_unread_duplicate(
                db,
                notification_type=notification_type,
                recipient_id=recipient_id,
                actor_id=actor_id,
                post_id=post_id,
                comment_id=comment_id,
            )
            if duplicate is not None:
                logger.debug("Suppressing duplicate %s notification for user %s", notification_type, recipient_id)
                return None
            notification = Notification(
                user_id=recipient_id,
                actor_id=actor_id,
                type=notification_type,
                post_id=post_id,
                comment_id=comment_id,
                content_json=serialize_content(content or NotificationContent()),
            )
            db.add(notification)
    except Exception:
        logger.exception("Failed to emit %s notification for user %s", notification_type, recipient_id)
        return None
    logger.info("Created %s notification %s for user %s", notification_type, notification.id, recipient_id)
    return notification


def notification_to_response(notification: Notification) -> NotificationResponse:
    actor = notification.actor
    return NotificationResponse(
        id=notification.id,
        type=notification.type,
        actor=UserBrief.model_validate(actor) if actor else None,
        post_id=notification.post_id,
        comment_id=notification.comment_id,
        content=deserialize_content(notification.content_json),
        is_read=notification.is_read,
        created_at=notification.created_at,
    )


async def list_for_user(
    db: AsyncSession,
    user_id: UUID,
    req: PageRequest,
    *,
    notification_type: str | None = None,
    unread_only: bool = False,
) -> Page[NotificationResponse]:
    """Get notifications for user, most recent first."""
    if notification_type is not None and notification_type not in NOTIFICATION_TYPES:
        raise ValidationFailed(f"Unknown notification type: {notification_type}")
    stmt = select(Notification).where(Notification.user_id == user_id)
    if notification_type is not None:
        stmt = stmt.where(Notification.type == notification_type)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    stmt = stmt.order_by(desc(Notification.created_at), desc(Notification.id))
    rows, total = await fetch_page(db, stmt, req)
    return build_page([notification_to_response(row[0]) for row in rows], total, req)


async def get_counts(db: AsyncSession, user_id: UUID) -> NotificationCounts:
    result = await db.execute(
        select(
            func.count(Notification.id),
            func.count(Notification.id).filter(Notification.is_read.is_(False)),
        ).where(Notification.user_id == user_id)
    )
    total, unread = result.one()
    return NotificationCounts(total=total or 0, unread=unread or 0)


async def get_unread_count(db: AsyncSession, user_id: UUID) -> int:
    """Get count of unread notifications."""
    return (await get_counts(db, user_id)).unread


async def mark_read(db: AsyncSession, user_id: UUID, notification_ids: list[UUID]) -> int:
    """Mark the given notifications as read. Returns how many changed state.

    Every id must exist and belong to ``user_id``; otherwise nothing is updated.
    """
    wanted = set(notification_ids)
    if not wanted:
        return 0
    result = await db.execute(
        select(Notification.id, Notification.user_id).where(Notification.id.in_(list(wanted)))
    )
    owners = {row.id: row.user_id for row in result.all()}
    missing = wanted - owners.keys()
    if missing:
        raise NotFound(f"Notification {sorted(missing, key=str)[0]} not found")
    foreign = sorted((nid for nid, owner in owners.items() if owner != user_id), key=str)
    if foreign:
        logger.warning("User %s tried to mark notification %s owned by someone else", user_id, foreign[0])
        raise Forbidden(f"Notification {foreign[0]} does not belong to you")
    stmt = (
        update(Notification)
        .where(Notification.id.in_(list(wanted)), Notification.is_read.is_(False))
        .values(is_read=True)
    )
    result = await db.execute(stmt)
    return result.rowcount or 0


async def mark_all_read(db: AsyncSession, user_id: UUID) -> int:
    """Mark all notifications as read. Returns count updated."""
    stmt = (
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    result = await db.execute(stmt)
    return result.rowcount or 0


async def delete_notification(db: AsyncSession, user_id: UUID, notification_id: UUID) -> None:
    notification = await db.get(Notification, notification_id)
    if notification is None:
        raise NotFound("Notification not found")
    if notification.user_id != user_id:
        raise Forbidden("You can only delete your own notifications")
    await db.delete(notification)
    await db.flush()


async def delete_all_for_user(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        delete(Notification)
        .where(Notification.user_id == user_id)
    )
    return result.rowcount or 0

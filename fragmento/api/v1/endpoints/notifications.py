"""Notifications API."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.api.deps import get_current_user, get_db, get_page
from fragmento.models.user import User
from fragmento.schemas.notification import MarkReadRequest, NotificationCounts, NotificationResponse, NotificationType
from fragmento.schemas.pagination import Page
from fragmento.services import notification_service
from fragmento.services.pagination import PageRequest

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=Page[NotificationResponse])
async def list_notifications(
    req: PageRequest = Depends(get_page),
    type: NotificationType | None = Query(None),
    unread_only: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await notification_service.list_for_user(
        db, current_user.id, req, notification_type=type, unread_only=unread_only
    )


@router.get("/count", response_model=NotificationCounts)
async def notification_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await notification_service.get_counts(db, current_user.id)


@router.patch("/mark-read")
async def mark_as_read(
    data: MarkReadRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await notification_service.mark_read(db, current_user.id, data.notification_ids)
    await db.commit()
    return {"updated": updated}


@router.patch("/mark-all-read")
async def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await notification_service.mark_all_read(db, current_user.id)
    await db.commit()
    return {"updated": updated}


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.delete_notification(db, current_user.id, notification_id)
    await db.commit()


@router.delete("")
async def delete_all_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await notification_service.delete_all_for_user(db, current_user.id)
    await db.commit()
    return {"deleted": deleted}

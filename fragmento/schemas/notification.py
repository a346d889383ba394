"""Pydantic schemas for Notification."""
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from fragmento.schemas.user import UserBrief

NotificationType = Literal["follow", "like", "comment", "mention"]


class NotificationContent(BaseModel):
    """Payload stored as JSON text next to the notification row."""
    action: str = ""
    post_title: str | None = None
    comment_text: str | None = None


class NotificationResponse(BaseModel):
    id: UUID
    type: str
    actor: UserBrief | None = None
    post_id: UUID | None = None
    comment_id: UUID | None = None
    content: NotificationContent
    is_read: bool = False
    created_at: datetime


class NotificationCounts(BaseModel):
    total: int
    unread: int


class MarkReadRequest(BaseModel):
    notification_ids: list[UUID] = Field(..., min_length=1)

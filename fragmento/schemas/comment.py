"""Pydantic schemas for Comment."""
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from fragmento.schemas.user import UserBrief

CommentSort = Literal["created_at", "likes"]


class CommentCreate(BaseModel):
    post_id: UUID
    text: str = Field(..., min_length=1, max_length=1000)
    parent_comment_id: UUID | None = None


class CommentUpdate(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(BaseModel):
    id: UUID
    post_id: UUID
    parent_comment_id: UUID | None = None
    user: UserBrief | None = None
    text: str
    created_at: datetime
    updated_at: datetime | None = None
    likes_count: int = 0
    replies_count: int = 0
    is_liked: bool = False
    can_edit: bool = False
    can_delete: bool = False
    replies: list["CommentResponse"] = []

"""Pydantic schemas for Post."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from fragmento.schemas.fragrance import FragranceResponse, NoteIn, RatingsIn, SeasonsIn, TagName
from fragmento.schemas.user import UserBrief


class PostCreate(BaseModel):
    # Whitespace-only names and tags fail min_length after stripping
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    brand: str = Field(..., min_length=1, max_length=100)
    category: str | None = Field(None, max_length=50)
    description: str | None = Field(None, max_length=2000)
    occasion: str | None = Field(None, max_length=50)
    photo_url: str | None = Field(None, max_length=500)
    day_night: int | None = Field(None, ge=0, le=100)
    tags: list[TagName] = []
    notes: list[NoteIn] = []
    accords: list[TagName] = []
    ratings: RatingsIn | None = None
    seasons: SeasonsIn | None = None


class PostUpdate(BaseModel):
    """Partial update: only fields that are set are applied; lists replace the whole collection."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=100)
    brand: str | None = Field(None, min_length=1, max_length=100)
    category: str | None = Field(None, max_length=50)
    description: str | None = Field(None, max_length=2000)
    occasion: str | None = Field(None, max_length=50)
    photo_url: str | None = Field(None, max_length=500)
    day_night: int | None = Field(None, ge=0, le=100)
    tags: list[TagName] | None = None
    notes: list[NoteIn] | None = None
    accords: list[TagName] | None = None
    ratings: RatingsIn | None = None
    seasons: SeasonsIn | None = None


class PostResponse(BaseModel):
    id: UUID
    user_id: UUID
    user: UserBrief | None = None
    created_at: datetime
    updated_at: datetime | None = None
    fragrance: FragranceResponse
    likes_count: int = 0
    comments_count: int = 0
    is_liked: bool = False
    is_saved: bool = False

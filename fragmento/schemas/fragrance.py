"""Pydantic schemas for the fragrance description embedded in posts and profiles."""
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

NoteCategory = Literal["top", "middle", "base", "unspecified"]

TagName = Annotated[str, Field(min_length=1, max_length=50)]


class NoteIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    category: NoteCategory = "unspecified"

    @field_validator("category", mode="before")
    @classmethod
    def _blank_category(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return "unspecified"
        return value.strip().lower() if isinstance(value, str) else value


class RatingsIn(BaseModel):
    overall: float | None = Field(None, ge=0, le=10)
    longevity: float | None = Field(None, ge=0, le=10)
    sillage: float | None = Field(None, ge=0, le=10)
    scent: float | None = Field(None, ge=0, le=10)
    value: float | None = Field(None, ge=0, le=10)


class SeasonsIn(BaseModel):
    spring: int | None = Field(None, ge=0, le=5)
    summer: int | None = Field(None, ge=0, le=5)
    fall: int | None = Field(None, ge=0, le=5)
    winter: int | None = Field(None, ge=0, le=5)


class NoteResponse(BaseModel):
    name: str
    category: str

    model_config = {"from_attributes": True}


class RatingsResponse(BaseModel):
    overall: float
    longevity: float
    sillage: float
    scent: float
    value: float

    model_config = {"from_attributes": True}


class SeasonsResponse(BaseModel):
    spring: int
    summer: int
    fall: int
    winter: int

    model_config = {"from_attributes": True}


class FragranceResponse(BaseModel):
    id: UUID
    name: str
    brand: str
    category: str | None = None
    description: str | None = None
    occasion: str | None = None
    photo_url: str | None = None
    day_night_preference: int = 50
    tags: list[str] = []
    notes: list[NoteResponse] = []
    accords: list[str] = []
    ratings: RatingsResponse
    seasons: SeasonsResponse


class SignatureFragranceIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    brand: str = Field(..., min_length=1, max_length=100)
    category: str | None = Field(None, max_length=50)
    description: str | None = Field(None, max_length=1000)
    photo_url: str | None = Field(None, max_length=500)
    notes: list[NoteIn] = []


class SignatureFragranceResponse(BaseModel):
    name: str
    brand: str
    category: str | None = None
    description: str | None = None
    photo_url: str | None = None
    notes: list[NoteResponse] = []

    model_config = {"from_attributes": True}

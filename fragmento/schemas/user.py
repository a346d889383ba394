"""Pydantic schemas for User."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from fragmento.schemas.fragrance import SignatureFragranceIn, SignatureFragranceResponse

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"


class UserBrief(BaseModel):
    id: UUID
    username: str
    profile_picture_url: str = ""

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    confirm_password: str | None = None

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("The password and confirmation password do not match.")
        return self


class UserUpdate(BaseModel):
    bio: str | None = Field(None, max_length=1000)
    profile_picture_url: str | None = Field(None, max_length=500)
    cover_picture_url: str | None = Field(None, max_length=500)
    signature_fragrance: SignatureFragranceIn | None = None
    remove_signature_fragrance: bool = False


class UserStats(BaseModel):
    posts_count: int = 0
    followers_count: int = 0
    following_count: int = 0


class UserProfileResponse(BaseModel):
    id: UUID
    username: str
    email: str | None = None  # Only in own profile
    bio: str = ""
    profile_picture_url: str = ""
    cover_picture_url: str = ""
    created_at: datetime
    last_active: datetime | None = None
    is_following: bool = False
    is_current_user: bool = False
    stats: UserStats
    signature_fragrance: SignatureFragranceResponse | None = None


class UserSearchResult(UserBrief):
    bio: str = ""
    is_following: bool = False


class FollowListItem(UserBrief):
    followed_at: datetime
    is_following: bool = False  # Set when viewer is authenticated


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserBrief


class TokenRefresh(BaseModel):
    refresh_token: str


class LoginRequest(BaseModel):
    login: str = Field(..., min_length=1, description="Username or email")
    password: str

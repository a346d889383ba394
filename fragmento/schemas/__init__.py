from fragmento.schemas.user import (
    UserCreate,
    UserUpdate,
    UserBrief,
    UserProfileResponse,
    Token,
    LoginRequest,
)
from fragmento.schemas.post import PostCreate, PostUpdate, PostResponse
from fragmento.schemas.comment import CommentCreate, CommentUpdate, CommentResponse
from fragmento.schemas.notification import NotificationContent, NotificationResponse
from fragmento.schemas.pagination import Page

"""V1 API router aggregation."""
from fastapi import APIRouter

from fragmento.api.v1.endpoints import auth, comments, follows, notifications, posts, search, users

api_router = APIRouter(prefix="/v1")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(follows.router)
api_router.include_router(posts.router)
api_router.include_router(comments.router)
api_router.include_router(notifications.router)
api_router.include_router(search.router, prefix="/search", tags=["search"])

"""User profile endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.api.deps import get_current_user, get_current_user_optional, get_db, get_page
from fragmento.core.exceptions import Forbidden
from fragmento.models.user import User
from fragmento.schemas.pagination import Page
from fragmento.schemas.post import PostResponse
from fragmento.schemas.user import FollowListItem, UserProfileResponse, UserUpdate
from fragmento.services import follow_service, post_service, user_service
from fragmento.services.pagination import PageRequest

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserProfileResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.profile_to_response(db, current_user, current_user)


@router.put("/me", response_model=UserProfileResponse)
async def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_profile(db, current_user, data)
    await db.commit()
    return await user_service.profile_to_response(db, user, current_user)


@router.get("/{username}", response_model=UserProfileResponse)
async def get_user_profile(
    username: str,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_profile(db, username, current_user)


@router.get("/{username}/posts", response_model=Page[PostResponse])
async def get_user_posts(
    username: str,
    req: PageRequest = Depends(get_page),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user_or_404(db, username)
    return await post_service.list_by_author(db, user.id, req, current_user.id if current_user else None)


@router.get("/{username}/saved", response_model=Page[PostResponse])
async def get_user_saved_posts(
    username: str,
    req: PageRequest = Depends(get_page),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user_or_404(db, username)
    if user.id != current_user.id:
        raise Forbidden("You can only view your own saved posts")
    return await post_service.list_saved(db, user.id, req)


@router.get("/{username}/followers", response_model=Page[FollowListItem])
async def get_followers(
    username: str,
    req: PageRequest = Depends(get_page),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user_or_404(db, username)
    return await follow_service.list_followers(db, user.id, req, current_user.id if current_user else None)


@router.get("/{username}/following", response_model=Page[FollowListItem])
async def get_following(
    username: str,
    req: PageRequest = Depends(get_page),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user_or_404(db, username)
    return await follow_service.list_following(db, user.id, req, current_user.id if current_user else None)

"""Post endpoints: discover, feed, CRUD, likes and saves."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.api.deps import get_current_user, get_current_user_optional, get_db, get_page
from fragmento.models.user import User
from fragmento.schemas.pagination import Page
from fragmento.schemas.post import PostCreate, PostResponse, PostUpdate
from fragmento.services import interaction_service, post_service
from fragmento.services.pagination import PageRequest

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/discover", response_model=Page[PostResponse])
async def discover(
    req: PageRequest = Depends(get_page),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.list_discover(db, req, current_user.id if current_user else None)


@router.get("/feed", response_model=Page[PostResponse])
async def feed(
    req: PageRequest = Depends(get_page),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.list_feed(db, current_user.id, req)


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: PostCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.create_post(db, current_user.id, data)
    await db.commit()
    return await post_service.get_post(db, post.id, current_user.id)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: UUID,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_post(db, post_id, current_user.id if current_user else None)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: UUID,
    data: PostUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await post_service.update_post(db, post_id, current_user.id, data)
    await db.commit()
    return await post_service.get_post(db, post_id, current_user.id)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await post_service.delete_post(db, post_id, current_user.id)
    await db.commit()


@router.post("/{post_id}/like")
async def like_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    created = await interaction_service.like(db, "post", post_id, current_user.id)
    await db.commit()
    return {
        "liked": True,
        "created": created,
        "likes_count": await interaction_service.count_likes(db, "post", post_id),
    }


@router.delete("/{post_id}/like")
async def unlike_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await interaction_service.unlike(db, "post", post_id, current_user.id)
    await db.commit()
    return {"liked": False, "likes_count": await interaction_service.count_likes(db, "post", post_id)}


@router.post("/{post_id}/save")
async def save_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    created = await interaction_service.save(db, post_id, current_user.id)
    await db.commit()
    return {"saved": True, "created": created}


@router.delete("/{post_id}/save")
async def unsave_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await interaction_service.unsave(db, post_id, current_user.id)
    await db.commit()
    return {"saved": False}

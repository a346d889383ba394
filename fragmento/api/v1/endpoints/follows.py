"""Follow endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.api.deps import get_current_user, get_db
from fragmento.models.user import User
from fragmento.services import follow_service, user_service

router = APIRouter(prefix="/follows", tags=["follows"])


@router.post("/{username}", status_code=status.HTTP_201_CREATED)
async def follow_user(
    username: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target = await user_service.get_user_or_404(db, username)
    await follow_service.follow(db, current_user.id, target.id)
    await db.commit()
    return {"following": True}


@router.delete("/{username}")
async def unfollow_user(
    username: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target = await user_service.get_user_or_404(db, username)
    removed = await follow_service.unfollow(db, current_user.id, target.id)
    await db.commit()
    return {"following": False, "removed": removed}


@router.get("/check/{username}")
async def check_following(
    username: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target = await user_service.get_user_or_404(db, username)
    return {"is_following": await follow_service.is_following(db, current_user.id, target.id)}


@router.delete("/remove-follower/{username}")
async def remove_follower(
    username: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    follower = await user_service.get_user_or_404(db, username)
    removed = await follow_service.remove_follower(db, current_user.id, follower.id)
    await db.commit()
    return {"removed": removed}

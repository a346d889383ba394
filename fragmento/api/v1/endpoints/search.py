from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.api import deps
from fragmento.models.user import User
from fragmento.schemas.user import UserSearchResult
from fragmento.services import user_service

router = APIRouter()


@router.get("/users", response_model=list[UserSearchResult])
async def search_users(
    q: str = Query(..., min_length=1, max_length=50),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(deps.get_db),
    current_user: User | None = Depends(deps.get_current_user_optional),
):
    """
    Search users by username; prefix matches come first.
    """
    return await user_service.search_users(db, q, current_user.id if current_user else None, limit)


@router.get("/suggest", response_model=list[str])
async def suggest(
    q: str = Query(..., min_length=1, max_length=50),
    limit: int = Query(5, ge=1, le=20),
    db: AsyncSession = Depends(deps.get_db),
):
    return await user_service.suggest_usernames(db, q, limit)

"""Comment endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.api.deps import get_current_user, get_current_user_optional, get_db, get_page
from fragmento.models.user import User
from fragmento.schemas.comment import CommentCreate, CommentResponse, CommentSort, CommentUpdate
from fragmento.schemas.pagination import Page
from fragmento.services import comment_service, interaction_service
from fragmento.services.pagination import PageRequest

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/post/{post_id}", response_model=Page[CommentResponse])
async def list_post_comments(
    post_id: UUID,
    req: PageRequest = Depends(get_page),
    sort: CommentSort = Query("created_at"),
    descending: bool = Query(True),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.list_top_level(
        db,
        post_id,
        req,
        sort=sort,
        descending=descending,
        viewer_id=current_user.id if current_user else None,
    )


@router.get("/{comment_id}/replies", response_model=Page[CommentResponse])
async def list_comment_replies(
    comment_id: UUID,
    req: PageRequest = Depends(get_page),
    sort: CommentSort = Query("created_at"),
    descending: bool = Query(True),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.list_replies(
        db,
        comment_id,
        req,
        sort=sort,
        descending=descending,
        viewer_id=current_user.id if current_user else None,
    )


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.add_comment(
        db, data.post_id, current_user.id, data.text, data.parent_comment_id
    )
    await db.commit()
    return await comment_service.get_comment(db, comment.id, current_user.id)


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: UUID,
    data: CommentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.update_comment(db, comment_id, current_user.id, data.text)
    await db.commit()
    return await comment_service.get_comment(db, comment_id, current_user.id)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, comment_id, current_user.id)
    await db.commit()


@router.post("/{comment_id}/like")
async def like_comment(
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    created = await interaction_service.like(db, "comment", comment_id, current_user.id)
    await db.commit()
    return {
        "liked": True,
        "created": created,
        "likes_count": await interaction_service.count_likes(db, "comment", comment_id),
    }


@router.delete("/{comment_id}/like")
async def unlike_comment(
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await interaction_service.unlike(db, "comment", comment_id, current_user.id)
    await db.commit()
    return {"liked": False, "likes_count": await interaction_service.count_likes(db, "comment", comment_id)}

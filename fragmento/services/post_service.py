"""Post business logic: fragrance posts, discover/feed/saved listings."""
import logging
from collections.abc import Mapping
from datetime import datetime
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import delete, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.core.exceptions import Forbidden, NotFound, ValidationFailed
from fragmento.models.comment import Comment
from fragmento.models.engagement import CommentLike, PostLike, SavedPost
from fragmento.models.fragrance import (
    Fragrance,
    FragranceAccord,
    FragranceNote,
    FragranceRatings,
    FragranceSeasons,
    FragranceTag,
)
from fragmento.models.notification import Notification
from fragmento.models.post import Post
from fragmento.schemas.fragrance import (
    FragranceResponse,
    NoteIn,
    NoteResponse,
    RatingsResponse,
    SeasonsResponse,
)
from fragmento.schemas.pagination import Page
from fragmento.schemas.post import PostCreate, PostResponse, PostUpdate
from fragmento.schemas.user import UserBrief
from fragmento.services import interaction_service
from fragmento.services.follow_service import following_ids_subquery
from fragmento.services.pagination import PageRequest, build_page, fetch_page

logger = logging.getLogger(__name__)

RATING_FIELDS = ("overall", "longevity", "sillage", "scent", "value")
SEASON_FIELDS = ("spring", "summer", "fall", "winter")
DEFAULT_RATING = 5.0
DEFAULT_SEASON = 3
DEFAULT_DAY_NIGHT = 50


def _likes_count():
    return select(func.count(PostLike.id)).where(PostLike.post_id == Post.id).correlate(Post).scalar_subquery()


def _comments_count():
    return select(func.count(Comment.id)).where(Comment.post_id == Post.id).correlate(Post).scalar_subquery()


def _post_rows():
    """Posts with their live like and comment counts."""
    return select(
        Post,
        _likes_count().label("likes_count"),
        _comments_count().label("comments_count"),
    ).execution_options(populate_existing=True)


def _unique(names: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for name in names:
        seen.setdefault(name.strip(), None)
    return [name for name in seen if name]


def _build_notes(notes: list[NoteIn]) -> list[FragranceNote]:
    return [FragranceNote(name=note.name.strip(), category=note.category, order=i) for i, note in enumerate(notes)]


def _validate(schema, data):
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(dict(data) if isinstance(data, Mapping) else data)
    except ValidationError as exc:
        raise ValidationFailed.from_pydantic(exc)


def fragrance_to_response(fragrance: Fragrance) -> FragranceResponse:
    return FragranceResponse(
        id=fragrance.id,
        name=fragrance.name,
        brand=fragrance.brand,
        category=fragrance.category,
        description=fragrance.description,
        occasion=fragrance.occasion,
        photo_url=fragrance.photo_url,
        day_night_preference=fragrance.day_night_preference,
        tags=[tag.name for tag in fragrance.tags],
        notes=[NoteResponse.model_validate(note) for note in fragrance.notes],
        accords=[accord.name for accord in fragrance.accords],
        ratings=RatingsResponse.model_validate(fragrance.ratings),
        seasons=SeasonsResponse.model_validate(fragrance.seasons),
    )


def post_to_response(
    post: Post,
    *,
    likes_count: int = 0,
    comments_count: int = 0,
    is_liked: bool = False,
    is_saved: bool = False,
) -> PostResponse:
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        user=UserBrief.model_validate(post.user) if post.user else None,
        created_at=post.created_at,
        updated_at=post.updated_at,
        fragrance=fragrance_to_response(post.fragrance),
        likes_count=likes_count or 0,
        comments_count=comments_count or 0,
        is_liked=is_liked,
        is_saved=is_saved,
    )


async def _rows_to_responses(db: AsyncSession, rows: list, viewer_id: UUID | None) -> list[PostResponse]:
    post_ids = [row[0].id for row in rows]
    liked: set[UUID] = set()
    saved: set[UUID] = set()
    if viewer_id is not None:
        liked = await interaction_service.liked_post_ids(db, viewer_id, post_ids)
        saved = await interaction_service.saved_post_ids(db, viewer_id, post_ids)
    return [
        post_to_response(
            row[0],
            likes_count=row[1],
            comments_count=row[2],
            is_liked=row[0].id in liked,
            is_saved=row[0].id in saved,
        )
        for row in rows
    ]


async def _load_owned_post(db: AsyncSession, post_id: UUID, actor_id: UUID) -> Post:
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFound("Post not found")
    if post.user_id != actor_id:
        logger.warning("User %s tried to modify post %s owned by %s", actor_id, post_id, post.user_id)
        raise Forbidden("You can only modify your own posts")
    return post


async def create_post(db: AsyncSession, author_id: UUID, draft: PostCreate | Mapping) -> Post:
    """Create a post and its fragrance subtree atomically."""
    data = _validate(PostCreate, draft)
    ratings = data.ratings.model_dump(exclude_none=True) if data.ratings else {}
    seasons = data.seasons.model_dump(exclude_none=True) if data.seasons else {}
    fragrance = Fragrance(
        name=data.name.strip(),
        brand=data.brand.strip(),
        category=data.category,
        description=data.description,
        occasion=data.occasion,
        photo_url=data.photo_url,
        day_night_preference=DEFAULT_DAY_NIGHT if data.day_night is None else data.day_night,
        notes=_build_notes(data.notes),
        tags=[FragranceTag(name=name) for name in _unique(data.tags)],
        accords=[FragranceAccord(name=name) for name in _unique(data.accords)],
        ratings=FragranceRatings(**{f: ratings.get(f, DEFAULT_RATING) for f in RATING_FIELDS}),
        seasons=FragranceSeasons(**{f: seasons.get(f, DEFAULT_SEASON) for f in SEASON_FIELDS}),
    )
    post = Post(user_id=author_id, fragrance=fragrance)
    async with db.begin_nested():
        db.add(post)
    logger.info("User %s created post %s (%s by %s)", author_id, post.id, fragrance.name, fragrance.brand)
    return post


async def update_post(db: AsyncSession, post_id: UUID, actor_id: UUID, patch: PostUpdate | Mapping) -> Post:
    """Apply a partial update. Collections given in the patch replace the stored ones."""
    data = _validate(PostUpdate, patch)
    post = await _load_owned_post(db, post_id, actor_id)
    fragrance = post.fragrance
    fields = data.model_fields_set

    async with db.begin_nested():
        for name in ("name", "brand"):
            value = getattr(data, name)
            if name in fields and value is not None:
                setattr(fragrance, name, value.strip())
        for name in ("category", "description", "occasion", "photo_url"):
            if name in fields:
                setattr(fragrance, name, getattr(data, name))
        if "day_night" in fields and data.day_night is not None:
            fragrance.day_night_preference = data.day_night

        # Old rows must be gone before new ones with the same unique names go in
        replaced = [name for name in ("notes", "tags", "accords") if name in fields and getattr(data, name) is not None]
        if replaced:
            for name in replaced:
                getattr(fragrance, name).clear()
            await db.flush()
            if "notes" in replaced:
                fragrance.notes.extend(_build_notes(data.notes))
            if "tags" in replaced:
                fragrance.tags.extend(FragranceTag(name=name) for name in _unique(data.tags))
            if "accords" in replaced:
                fragrance.accords.extend(FragranceAccord(name=name) for name in _unique(data.accords))

        if data.ratings is not None:
            for name, value in data.ratings.model_dump(exclude_none=True).items():
                setattr(fragrance.ratings, name, value)
        if data.seasons is not None:
            for name, value in data.seasons.model_dump(exclude_none=True).items():
                setattr(fragrance.seasons, name, value)

        post.updated_at = datetime.utcnow()
    logger.info("User %s updated post %s", actor_id, post_id)
    return post


async def delete_post(db: AsyncSession, post_id: UUID, actor_id: UUID) -> None:
    """Delete a post with everything that hangs off it."""
    post = await _load_owned_post(db, post_id, actor_id)
    comment_ids = select(Comment.id).where(Comment.post_id == post_id)
    async with db.begin_nested():
        await db.execute(
            delete(Notification).where(
                or_(Notification.post_id == post_id, Notification.comment_id.in_(comment_ids))
            )
        )
        await db.execute(delete(CommentLike).where(CommentLike.comment_id.in_(comment_ids)))
        await db.execute(delete(Comment).where(Comment.post_id == post_id))
        await db.execute(delete(PostLike).where(PostLike.post_id == post_id))
        await db.execute(delete(SavedPost).where(SavedPost.post_id == post_id))
        await db.delete(post)
    logger.info("User %s deleted post %s", actor_id, post_id)


async def get_post(db: AsyncSession, post_id: UUID, viewer_id: UUID | None = None) -> PostResponse:
    result = await db.execute(_post_rows().where(Post.id == post_id))
    row = result.first()
    if row is None:
        raise NotFound("Post not found")
    return (await _rows_to_responses(db, [row], viewer_id))[0]


async def _list(db: AsyncSession, stmt, req: PageRequest, viewer_id: UUID | None) -> Page[PostResponse]:
    rows, total = await fetch_page(db, stmt, req)
    return build_page(await _rows_to_responses(db, rows, viewer_id), total, req)


async def list_by_author(
    db: AsyncSession, author_id: UUID, req: PageRequest, viewer_id: UUID | None = None
) -> Page[PostResponse]:
    stmt = (
        _post_rows()
        .where(Post.user_id == author_id)
        .order_by(desc(Post.created_at), desc(Post.id))
    )
    return await _list(db, stmt, req, viewer_id)


async def list_discover(db: AsyncSession, req: PageRequest, viewer_id: UUID | None = None) -> Page[PostResponse]:
    """All posts, most engaged first."""
    stmt = _post_rows().order_by(
        desc(_likes_count() + _comments_count()),
        desc(Post.created_at),
        desc(Post.id),
    )
    return await _list(db, stmt, req, viewer_id)


async def list_feed(db: AsyncSession, user_id: UUID, req: PageRequest) -> Page[PostResponse]:
    """Posts from followed users, newest first."""
    stmt = (
        _post_rows()
        .where(Post.user_id.in_(following_ids_subquery(user_id)))
        .order_by(desc(Post.created_at), desc(Post.id))
    )
    return await _list(db, stmt, req, user_id)


async def list_saved(db: AsyncSession, user_id: UUID, req: PageRequest) -> Page[PostResponse]:
    """Posts the user saved, most recently saved first."""
    stmt = (
        _post_rows()
        .join(SavedPost, SavedPost.post_id == Post.id)
        .where(SavedPost.user_id == user_id)
        .order_by(desc(SavedPost.saved_at), desc(SavedPost.id))
    )
    return await _list(db, stmt, req, user_id)


async def count_by_author(db: AsyncSession, author_id: UUID) -> int:
    result = await db.execute(select(func.count(Post.id)).where(Post.user_id == author_id))
    return result.scalar() or 0

"""Content store: creating, editing, deleting and listing fragrance posts."""
import uuid
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from fragmento.core.exceptions import Forbidden, NotFound, ValidationFailed
from fragmento.models.comment import Comment
from fragmento.models.engagement import SavedPost
from fragmento.models.fragrance import Fragrance, FragranceRatings, FragranceSeasons, FragranceTag
from fragmento.models.notification import Notification
from fragmento.models.post import Post
from fragmento.schemas.post import PostCreate, PostUpdate
from fragmento.services import comment_service, follow_service, interaction_service, post_service
from fragmento.services.pagination import page_request


async def _count(db, column) -> int:
    return (await db.execute(select(func.count(column)))).scalar()


@pytest.mark.asyncio
async def test_create_post_with_defaults(db, alice):
    post = await post_service.create_post(
        db,
        alice.id,
        {"name": "Aventus", "brand": "Creed", "ratings": {"overall": 9}, "seasons": {"fall": 5}},
    )
    response = await post_service.get_post(db, post.id)

    assert await _count(db, Fragrance.id) == 1
    assert response.fragrance.name == "Aventus"
    assert response.fragrance.ratings.overall == 9
    assert response.fragrance.ratings.longevity == 5
    assert response.fragrance.seasons.fall == 5
    assert response.fragrance.seasons.spring == 3
    assert response.fragrance.day_night_preference == 50
    assert response.likes_count == 0
    assert response.comments_count == 0
    assert response.user.username == "alice"


@pytest.mark.asyncio
async def test_create_post_keeps_note_order_and_dedupes_tags(db, alice):
    draft = PostCreate(
        name="Santal 33",
        brand="Le Labo",
        notes=[
            {"name": "Sandalwood", "category": "base"},
            {"name": "Cardamom", "category": ""},
            {"name": "Violet", "category": "Middle"},
        ],
        tags=["woody", "cult", "woody"],
        accords=["woody", "leather"],
    )
    post = await post_service.create_post(db, alice.id, draft)
    response = await post_service.get_post(db, post.id)

    assert [(n.name, n.category) for n in response.fragrance.notes] == [
        ("Sandalwood", "base"),
        ("Cardamom", "unspecified"),
        ("Violet", "middle"),
    ]
    assert response.fragrance.tags == ["woody", "cult"]
    assert response.fragrance.accords == ["woody", "leather"]


@pytest.mark.asyncio
async def test_create_post_rejects_invalid_draft(db, alice):
    with pytest.raises(ValidationFailed):
        await post_service.create_post(db, alice.id, {"name": "", "brand": "Creed"})
    with pytest.raises(ValidationFailed):
        await post_service.create_post(db, alice.id, {"name": "X", "brand": "Y", "ratings": {"overall": 11}})
    assert await _count(db, Post.id) == 0


@pytest.mark.asyncio
async def test_blank_names_are_rejected(db, alice, post):
    with pytest.raises(ValidationFailed) as excinfo:
        await post_service.create_post(db, alice.id, {"name": "   ", "brand": "  "})
    assert excinfo.value.message.startswith("name: ")
    with pytest.raises(ValidationFailed) as excinfo:
        await post_service.create_post(db, alice.id, {"name": "Aventus", "brand": "Creed", "notes": [{"name": " "}]})
    assert excinfo.value.message.startswith("notes.0.name: ")
    with pytest.raises(ValidationFailed):
        await post_service.update_post(db, post.id, alice.id, {"brand": "   "})

    created = await post_service.create_post(db, alice.id, {"name": "  Santal 33 ", "brand": " Le Labo"})
    response = await post_service.get_post(db, created.id)
    assert (response.fragrance.name, response.fragrance.brand) == ("Santal 33", "Le Labo")
    assert await _count(db, Post.id) == 2


@pytest.mark.asyncio
async def test_create_post_failure_leaves_no_rows(db):
    with pytest.raises(IntegrityError):
        await post_service.create_post(
            db, uuid.uuid4(), {"name": "Aventus", "brand": "Creed", "ratings": {"overall": 9}, "seasons": {"fall": 4}}
        )

    for column in (Post.id, Fragrance.id, FragranceRatings.id, FragranceSeasons.id):
        assert await _count(db, column) == 0


@pytest.mark.asyncio
async def test_update_post_patches_fields(db, alice, post):
    await post_service.update_post(
        db,
        post.id,
        alice.id,
        PostUpdate(description="Smoky pineapple", tags=["fruity", "smoky"], ratings={"overall": 8.5}),
    )
    response = await post_service.get_post(db, post.id)

    assert response.fragrance.name == "Aventus"
    assert response.fragrance.description == "Smoky pineapple"
    assert response.fragrance.tags == ["fruity", "smoky"]
    assert response.fragrance.ratings.overall == 8.5
    assert response.fragrance.ratings.sillage == 5
    assert [n.name for n in response.fragrance.notes] == ["Pineapple"]
    assert response.updated_at is not None


@pytest.mark.asyncio
async def test_update_post_can_replace_tags_with_same_names(db, alice):
    post = await post_service.create_post(db, alice.id, {"name": "A", "brand": "B", "tags": ["x", "y"]})
    await post_service.update_post(db, post.id, alice.id, {"tags": ["y", "x", "z"]})
    response = await post_service.get_post(db, post.id)
    assert sorted(response.fragrance.tags) == ["x", "y", "z"]
    assert await _count(db, FragranceTag.id) == 3


@pytest.mark.asyncio
async def test_update_and_delete_require_author(db, bob, post):
    with pytest.raises(Forbidden):
        await post_service.update_post(db, post.id, bob.id, {"name": "Mine"})
    with pytest.raises(Forbidden):
        await post_service.delete_post(db, post.id, bob.id)
    with pytest.raises(NotFound):
        await post_service.delete_post(db, uuid.uuid4(), bob.id)


@pytest.mark.asyncio
async def test_delete_post_removes_everything_attached(db, alice, bob, post):
    comment = await comment_service.add_comment(db, post.id, bob.id, "Love it")
    await comment_service.add_comment(db, post.id, alice.id, "Thanks", parent_id=comment.id)
    await interaction_service.like(db, "post", post.id, bob.id)
    await interaction_service.like(db, "comment", comment.id, alice.id)
    await interaction_service.save(db, post.id, bob.id)

    await post_service.delete_post(db, post.id, alice.id)

    assert await _count(db, Post.id) == 0
    assert await _count(db, Fragrance.id) == 0
    assert await _count(db, FragranceRatings.id) == 0
    assert await _count(db, Comment.id) == 0
    assert await _count(db, SavedPost.id) == 0
    assert await _count(db, Notification.id) == 0
    with pytest.raises(NotFound):
        await post_service.get_post(db, post.id)


@pytest.mark.asyncio
async def test_feed_only_contains_followed_authors(db, alice, bob, carol):
    await post_service.create_post(db, bob.id, {"name": "Bleu", "brand": "Chanel"})
    await post_service.create_post(db, carol.id, {"name": "Oud Wood", "brand": "Tom Ford"})
    await follow_service.follow(db, alice.id, bob.id)

    feed = await post_service.list_feed(db, alice.id, page_request())
    assert [p.fragrance.name for p in feed.items] == ["Bleu"]
    assert feed.total_count == 1


@pytest.mark.asyncio
async def test_discover_ranks_by_engagement(db, alice, bob, carol):
    quiet = await post_service.create_post(db, alice.id, {"name": "Quiet", "brand": "X"})
    busy = await post_service.create_post(db, alice.id, {"name": "Busy", "brand": "X"})
    quiet.created_at = datetime.utcnow() + timedelta(minutes=5)
    await db.flush()
    await interaction_service.like(db, "post", busy.id, bob.id)
    await comment_service.add_comment(db, busy.id, carol.id, "wow")

    page = await post_service.list_discover(db, page_request(), viewer_id=bob.id)
    assert [p.fragrance.name for p in page.items] == ["Busy", "Quiet"]
    assert page.items[0].likes_count == 1
    assert page.items[0].comments_count == 1
    assert page.items[0].is_liked is True
    assert page.items[1].is_liked is False


@pytest.mark.asyncio
async def test_list_by_author_is_newest_first_and_stable(db, alice):
    base = datetime.utcnow()
    for i in range(5):
        post = await post_service.create_post(db, alice.id, {"name": f"Scent {i}", "brand": "House"})
        post.created_at = base + timedelta(seconds=i)
    await db.flush()

    first = await post_service.list_by_author(db, alice.id, page_request(1, 2))
    again = await post_service.list_by_author(db, alice.id, page_request(1, 2))
    assert [p.id for p in first.items] == [p.id for p in again.items]
    assert first.has_more == again.has_more is True
    assert [p.fragrance.name for p in first.items] == ["Scent 4", "Scent 3"]

    last = await post_service.list_by_author(db, alice.id, page_request(3, 2))
    assert [p.fragrance.name for p in last.items] == ["Scent 0"]
    assert last.has_more is False
    assert last.total_pages == 3


@pytest.mark.asyncio
async def test_list_saved(db, alice, bob, post):
    await interaction_service.save(db, post.id, bob.id)
    saved = await post_service.list_saved(db, bob.id, page_request())
    assert [p.id for p in saved.items] == [post.id]
    assert saved.items[0].is_saved is True
    assert (await post_service.list_saved(db, alice.id, page_request())).total_count == 0

"""Social graph: follow edges, counts and listings."""
import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from fragmento.core.exceptions import Conflict, InvalidOperation, NotFound
from fragmento.models.engagement import Follow
from fragmento.models.notification import Notification
from fragmento.services import follow_service
from fragmento.services.pagination import page_request


async def _edge_count(db, follower_id, following_id) -> int:
    result = await db.execute(
        select(func.count(Follow.id)).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
    )
    return result.scalar()


@pytest.mark.asyncio
async def test_follow_self_is_rejected(db, alice):
    with pytest.raises(InvalidOperation):
        await follow_service.follow(db, alice.id, alice.id)
    assert await follow_service.is_following(db, alice.id, alice.id) is False


@pytest.mark.asyncio
async def test_follow_unknown_user(db, alice):
    with pytest.raises(NotFound):
        await follow_service.follow(db, alice.id, uuid.uuid4())


@pytest.mark.asyncio
async def test_duplicate_follow_keeps_one_edge(db, alice, bob):
    await follow_service.follow(db, alice.id, bob.id)
    assert await follow_service.is_following(db, alice.id, bob.id)

    with pytest.raises(Conflict):
        await follow_service.follow(db, alice.id, bob.id)

    assert await follow_service.is_following(db, alice.id, bob.id)
    assert await _edge_count(db, alice.id, bob.id) == 1


@pytest.mark.asyncio
async def test_follow_by_unknown_user_is_not_a_duplicate(db, bob):
    with pytest.raises(IntegrityError):
        await follow_service.follow(db, uuid.uuid4(), bob.id)
    assert await follow_service.get_follow_counts(db, bob.id) == (0, 0)


@pytest.mark.asyncio
async def test_follow_notifies_target(db, alice, bob):
    await follow_service.follow(db, alice.id, bob.id)
    result = await db.execute(select(Notification).where(Notification.user_id == bob.id))
    notifications = result.scalars().all()
    assert len(notifications) == 1
    assert notifications[0].type == "follow"
    assert notifications[0].actor_id == alice.id


@pytest.mark.asyncio
async def test_unfollow_is_a_noop_without_edge(db, alice, bob):
    assert await follow_service.unfollow(db, alice.id, bob.id) is False
    await follow_service.follow(db, alice.id, bob.id)
    assert await follow_service.unfollow(db, alice.id, bob.id) is True
    assert await follow_service.unfollow(db, alice.id, bob.id) is False
    assert await follow_service.is_following(db, alice.id, bob.id) is False


@pytest.mark.asyncio
async def test_remove_follower(db, alice, bob):
    await follow_service.follow(db, bob.id, alice.id)
    assert await follow_service.remove_follower(db, alice.id, bob.id) is True
    assert await follow_service.is_following(db, bob.id, alice.id) is False


@pytest.mark.asyncio
async def test_counts_and_lists(db, alice, bob, carol):
    await follow_service.follow(db, bob.id, alice.id)
    await follow_service.follow(db, carol.id, alice.id)
    await follow_service.follow(db, alice.id, carol.id)

    assert await follow_service.get_follow_counts(db, alice.id) == (2, 1)

    followers = await follow_service.list_followers(db, alice.id, page_request(), viewer_id=alice.id)
    assert followers.total_count == 2
    assert {item.username for item in followers.items} == {"bob", "carol"}
    by_name = {item.username: item for item in followers.items}
    assert by_name["carol"].is_following is True
    assert by_name["bob"].is_following is False

    following = await follow_service.list_following(db, alice.id, page_request())
    assert [item.username for item in following.items] == ["carol"]
    assert following.has_more is False


@pytest.mark.asyncio
async def test_following_ids_among(db, alice, bob, carol):
    await follow_service.follow(db, alice.id, bob.id)
    assert await follow_service.following_ids_among(db, alice.id, [bob.id, carol.id]) == {bob.id}
    assert await follow_service.following_ids_among(db, alice.id, []) == set()

"""Notification engine: emission rules, read state and payloads."""
import uuid

import pytest

from fragmento.core.exceptions import Forbidden, NotFound, ValidationFailed
from fragmento.models.notification import Notification
from fragmento.schemas.notification import NotificationContent
from fragmento.services import notification_service
from fragmento.services.pagination import page_request


@pytest.mark.asyncio
async def test_emit_skips_self(db, alice):
    assert await notification_service.emit(db, "follow", recipient_id=alice.id, actor_id=alice.id) is None
    assert (await notification_service.get_counts(db, alice.id)).total == 0


@pytest.mark.asyncio
async def test_emit_suppresses_unread_duplicates(db, alice, bob):
    first = await notification_service.emit(db, "follow", recipient_id=alice.id, actor_id=bob.id)
    second = await notification_service.emit(db, "follow", recipient_id=alice.id, actor_id=bob.id)
    assert first is not None
    assert second is None

    await notification_service.mark_read(db, alice.id, [first.id])
    third = await notification_service.emit(db, "follow", recipient_id=alice.id, actor_id=bob.id)
    assert third is not None
    assert (await notification_service.get_counts(db, alice.id)).total == 2


@pytest.mark.asyncio
async def test_emit_failure_is_swallowed(db, alice):
    # Unknown actor violates the foreign key; emit logs and returns None
    result = await notification_service.emit(db, "follow", recipient_id=alice.id, actor_id=uuid.uuid4())
    assert result is None
    assert (await notification_service.get_counts(db, alice.id)).total == 0


@pytest.mark.asyncio
async def test_read_round_trip(db, alice, bob, carol):
    target = await notification_service.emit(
        db, "follow", recipient_id=alice.id, actor_id=bob.id, content=NotificationContent(action="followed you")
    )
    other = await notification_service.emit(db, "follow", recipient_id=alice.id, actor_id=carol.id)

    before = await notification_service.list_for_user(db, alice.id, page_request())
    assert {n.id: n.is_read for n in before.items} == {target.id: False, other.id: False}

    assert await notification_service.mark_read(db, alice.id, [target.id]) == 1
    assert await notification_service.mark_read(db, alice.id, [target.id]) == 0

    after = await notification_service.list_for_user(db, alice.id, page_request())
    assert {n.id: n.is_read for n in after.items} == {target.id: True, other.id: False}
    assert await notification_service.get_unread_count(db, alice.id) == 1

    unread = await notification_service.list_for_user(db, alice.id, page_request(), unread_only=True)
    assert [n.id for n in unread.items] == [other.id]


@pytest.mark.asyncio
async def test_mark_read_checks_ownership(db, alice, bob):
    mine = await notification_service.emit(db, "follow", recipient_id=alice.id, actor_id=bob.id)
    theirs = await notification_service.emit(db, "follow", recipient_id=bob.id, actor_id=alice.id)

    with pytest.raises(Forbidden):
        await notification_service.mark_read(db, alice.id, [mine.id, theirs.id])
    with pytest.raises(NotFound):
        await notification_service.mark_read(db, alice.id, [mine.id, uuid.uuid4()])

    assert (await notification_service.get_counts(db, alice.id)).unread == 1
    assert (await notification_service.get_counts(db, bob.id)).unread == 1


@pytest.mark.asyncio
async def test_mark_all_read_and_delete(db, alice, bob, carol):
    await notification_service.emit(db, "follow", recipient_id=alice.id, actor_id=bob.id)
    note = await notification_service.emit(db, "follow", recipient_id=alice.id, actor_id=carol.id)

    assert await notification_service.mark_all_read(db, alice.id) == 2
    assert await notification_service.get_unread_count(db, alice.id) == 0

    with pytest.raises(Forbidden):
        await notification_service.delete_notification(db, bob.id, note.id)
    await notification_service.delete_notification(db, alice.id, note.id)
    with pytest.raises(NotFound):
        await notification_service.delete_notification(db, alice.id, note.id)

    assert await notification_service.delete_all_for_user(db, alice.id) == 1
    assert (await notification_service.get_counts(db, alice.id)).total == 0


@pytest.mark.asyncio
async def test_filter_by_type(db, alice, bob):
    await notification_service.emit(db, "follow", recipient_id=alice.id, actor_id=bob.id)
    page = await notification_service.list_for_user(db, alice.id, page_request(), notification_type="like")
    assert page.items == []
    with pytest.raises(ValidationFailed):
        await notification_service.list_for_user(db, alice.id, page_request(), notification_type="poke")


@pytest.mark.asyncio
async def test_unreadable_payload_falls_back_to_empty(db, alice, bob):
    db.add(Notification(user_id=alice.id, actor_id=bob.id, type="like", content_json="{not json"))
    await db.flush()
    page = await notification_service.list_for_user(db, alice.id, page_request())
    assert page.items[0].content == NotificationContent()


def test_content_round_trip():
    content = NotificationContent(action="liked your comment", post_title="Aventus", comment_text="ok")
    raw = notification_service.serialize_content(content)
    assert notification_service.deserialize_content(raw) == content
    assert notification_service.deserialize_content(None) == NotificationContent()


def test_excerpt():
    assert notification_service.excerpt("short") == "short"
    long_text = "a" * 150
    clipped = notification_service.excerpt(long_text)
    assert len(clipped) == 100
    assert clipped.endswith("...")

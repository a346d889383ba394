"""End-to-end checks through the FastAPI app."""
import uuid

import pytest

AVENTUS = {
    "name": "Aventus",
    "brand": "Creed",
    "notes": [{"name": "Pineapple", "category": "top"}, {"name": "Birch", "category": "base"}],
    "tags": ["fruity"],
    "ratings": {"overall": 9},
    "seasons": {"fall": 5},
}


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_register_login_refresh(client):
    response = await client.post(
        "/api/v1/auth/register",
        json={"username": "dana", "email": "dana@example.com", "password": "Vetiver#99"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["username"] == "dana"

    duplicate = await client.post(
        "/api/v1/auth/register",
        json={"username": "dana", "email": "other@example.com", "password": "Vetiver#99"},
    )
    assert duplicate.status_code == 409

    login = await client.post("/api/v1/auth/login", json={"login": "dana@example.com", "password": "Vetiver#99"})
    assert login.status_code == 200
    bad_login = await client.post("/api/v1/auth/login", json={"login": "dana", "password": "nope"})
    assert bad_login.status_code == 401

    refreshed = await client.post("/api/v1/auth/refresh", json={"refresh_token": login.json()["refresh_token"]})
    assert refreshed.status_code == 200
    reused = await client.post("/api/v1/auth/refresh", json={"refresh_token": login.json()["refresh_token"]})
    assert reused.status_code == 403

    me = await client.get(
        "/api/v1/users/me", headers={"Authorization": f"Bearer {refreshed.json()['access_token']}"}
    )
    assert me.status_code == 200
    assert me.json()["email"] == "dana@example.com"


@pytest.mark.asyncio
async def test_requires_authentication(client):
    response = await client.post("/api/v1/posts", json=AVENTUS)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_post_lifecycle(client, db, alice, bob, auth_headers):
    await db.commit()

    created = await client.post("/api/v1/posts", json=AVENTUS, headers=auth_headers(alice))
    assert created.status_code == 201
    post = created.json()
    assert post["fragrance"]["ratings"]["overall"] == 9
    assert post["fragrance"]["seasons"]["fall"] == 5
    assert post["likes_count"] == 0

    for _ in range(2):
        liked = await client.post(f"/api/v1/posts/{post['id']}/like", headers=auth_headers(bob))
        assert liked.status_code == 200
        assert liked.json()["likes_count"] == 1

    viewed = await client.get(f"/api/v1/posts/{post['id']}", headers=auth_headers(bob))
    assert viewed.json()["is_liked"] is True

    forbidden = await client.put(
        f"/api/v1/posts/{post['id']}", json={"name": "Stolen"}, headers=auth_headers(bob)
    )
    assert forbidden.status_code == 403

    updated = await client.put(
        f"/api/v1/posts/{post['id']}", json={"description": "Smoky"}, headers=auth_headers(alice)
    )
    assert updated.status_code == 200
    assert updated.json()["fragrance"]["description"] == "Smoky"

    deleted = await client.delete(f"/api/v1/posts/{post['id']}", headers=auth_headers(alice))
    assert deleted.status_code == 204
    missing = await client.get(f"/api/v1/posts/{post['id']}")
    assert missing.status_code == 404
    assert missing.json() == {"detail": "Post not found"}


@pytest.mark.asyncio
async def test_comments_and_notifications(client, db, alice, bob, carol, auth_headers):
    await db.commit()
    post = (await client.post("/api/v1/posts", json=AVENTUS, headers=auth_headers(alice))).json()

    top = await client.post(
        "/api/v1/comments", json={"post_id": post["id"], "text": "nice"}, headers=auth_headers(bob)
    )
    assert top.status_code == 201
    top_id = top.json()["id"]
    assert top.json()["can_edit"] is True

    reply = await client.post(
        "/api/v1/comments",
        json={"post_id": post["id"], "text": "agreed", "parent_comment_id": top_id},
        headers=auth_headers(carol),
    )
    assert reply.status_code == 201

    listing = await client.get(f"/api/v1/comments/post/{post['id']}")
    items = listing.json()["items"]
    assert [c["id"] for c in items] == [top_id]
    assert items[0]["replies_count"] == 1

    blocked = await client.delete(f"/api/v1/comments/{top_id}", headers=auth_headers(bob))
    assert blocked.status_code == 409

    counts = await client.get("/api/v1/notifications/count", headers=auth_headers(alice))
    assert counts.json() == {"total": 2, "unread": 2}

    page = await client.get("/api/v1/notifications", headers=auth_headers(alice))
    first_id = page.json()["items"][0]["id"]
    assert page.json()["items"][0]["content"]["post_title"] == "Aventus"

    stranger = await client.patch(
        "/api/v1/notifications/mark-read", json={"notification_ids": [first_id]}, headers=auth_headers(bob)
    )
    assert stranger.status_code == 403

    marked = await client.patch(
        "/api/v1/notifications/mark-read", json={"notification_ids": [first_id]}, headers=auth_headers(alice)
    )
    assert marked.json() == {"updated": 1}
    counts = await client.get("/api/v1/notifications/count", headers=auth_headers(alice))
    assert counts.json() == {"total": 2, "unread": 1}

    unknown = await client.patch(
        "/api/v1/notifications/mark-read", json={"notification_ids": [str(uuid.uuid4())]}, headers=auth_headers(alice)
    )
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_follow_flow(client, db, alice, bob, auth_headers):
    await db.commit()

    followed = await client.post("/api/v1/follows/bob", headers=auth_headers(alice))
    assert followed.status_code == 201
    again = await client.post("/api/v1/follows/bob", headers=auth_headers(alice))
    assert again.status_code == 409
    itself = await client.post("/api/v1/follows/alice", headers=auth_headers(alice))
    assert itself.status_code == 400

    check = await client.get("/api/v1/follows/check/bob", headers=auth_headers(alice))
    assert check.json() == {"is_following": True}

    followers = await client.get("/api/v1/users/bob/followers")
    assert [item["username"] for item in followers.json()["items"]] == ["alice"]

    profile = await client.get("/api/v1/users/bob", headers=auth_headers(alice))
    assert profile.json()["stats"]["followers_count"] == 1
    assert profile.json()["is_following"] is True

    saved = await client.get("/api/v1/users/bob/saved", headers=auth_headers(alice))
    assert saved.status_code == 403

    search = await client.get("/api/v1/search/users", params={"q": "bo"})
    assert [user["username"] for user in search.json()] == ["bob"]


@pytest.mark.asyncio
async def test_page_size_is_clamped(client):
    response = await client.get("/api/v1/posts/discover", params={"page_size": 500})
    assert response.status_code == 200
    assert response.json()["page_size"] == 50
    invalid = await client.get("/api/v1/posts/discover", params={"page": 0})
    assert invalid.status_code == 422

"""
Feed cache tests — GET /posts is cache-aside over Redis, and every write
that shows up in the feed drops the cached pages.

These run against fakeredis (see the ``feed_cache`` fixture) so the cache
path is exercised exactly as it is with a real server.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import event
from sqlalchemy.orm import Session

from socialnet.cache import CacheManager, cache

ALL_KEY = CacheManager.feed_key(None)


async def _warm_feed(async_client: AsyncClient) -> list:
    resp = await async_client.get("/posts")
    assert resp.status_code == 200
    return resp.json()


# ---------------------------------------------------------------------------
# Cache hits
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_second_feed_read_is_served_from_cache(user_client, async_client, feed_cache):
    client = await user_client("A")
    await client.post("/posts", json={"content": "hello"})

    first = await _warm_feed(async_client)
    assert await feed_cache.exists(ALL_KEY)

    hits = cache.stats["hits"]
    resp = await async_client.get("/posts")
    assert cache.stats["hits"] == hits + 1
    assert resp.json() == first
    assert int(resp.headers["x-query-count"]) == 0


@pytest.mark.asyncio
async def test_author_feed_cached_under_its_own_key(user_client, async_client, feed_cache):
    client = await user_client("A")
    await client.post("/posts", json={"content": "hello"})

    await async_client.get("/posts", params={"author": "A"})
    assert await feed_cache.exists(CacheManager.feed_key("A"))
    assert not await feed_cache.exists(ALL_KEY)


# ---------------------------------------------------------------------------
# Invalidation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, path, body",
    [
        ("POST", "/posts", {"content": "second"}),
        ("PATCH", "/posts/1", {"content": "edited"}),
        ("DELETE", "/posts/1", None),
        ("POST", "/posts/1/comments", {"content": "another"}),
        ("PATCH", "/posts/1/comments/1", {"content": "edited"}),
        ("DELETE", "/posts/1/comments/1", None),
        ("POST", "/posts/1/likes", None),
        ("PATCH", "/users/username", {"username": "A2"}),
        ("DELETE", "/users", None),
    ],
)
async def test_feed_writes_invalidate_cache(
    user_client, async_client, feed_cache, method, path, body
):
    client = await user_client("A")
    await client.post("/posts", json={"content": "hello"})
    await client.post("/posts/1/comments", json={"content": "first!"})

    cached = await _warm_feed(async_client)
    await async_client.get("/posts", params={"author": "A"})

    resp = await client.request(method, path, json=body)
    assert resp.status_code < 300, resp.text

    assert await feed_cache.keys("posts:feed:*") == []
    assert await _warm_feed(async_client) != cached


@pytest.mark.asyncio
async def test_unlike_invalidates_cache(user_client, async_client, feed_cache):
    client = await user_client("A")
    await client.post("/posts", json={"content": "hello"})
    await client.post("/posts/1/likes")

    assert (await _warm_feed(async_client))[0]["likes"] == 1
    await client.delete("/posts/1/likes")
    assert (await _warm_feed(async_client))[0]["likes"] == 0


@pytest.mark.asyncio
async def test_failed_write_keeps_cache(user_client, async_client, feed_cache):
    client = await user_client("A")
    await client.post("/posts", json={"content": "hello"})
    await _warm_feed(async_client)

    resp = await client.post("/posts/99/likes")
    assert resp.status_code == 404
    assert await feed_cache.exists(ALL_KEY)


@pytest.mark.asyncio
async def test_cache_invalidated_after_commit(user_client, monkeypatch):
    client = await user_client("A")
    events: list[str] = []

    async def record_invalidate():
        events.append("invalidate")

    def record_commit(session):
        events.append("commit")

    monkeypatch.setattr(cache, "invalidate_feed", record_invalidate)
    event.listen(Session, "after_commit", record_commit)
    try:
        resp = await client.post("/posts", json={"content": "hello"})
    finally:
        event.remove(Session, "after_commit", record_commit)

    assert resp.status_code == 201
    assert events[:2] == ["commit", "invalidate"]

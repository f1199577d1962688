"""
Like endpoint tests — one like per user per post, counts, and the
per-user like listing.
"""
import pytest
from httpx import AsyncClient


async def _post_id(client: AsyncClient) -> int:
    resp = await client.post("/posts", json={"content": "likeable"})
    assert resp.status_code == 201
    return resp.json()["post"]["id"]


@pytest.mark.asyncio
async def test_like_post(user_client):
    client = await user_client("A")
    pid = await _post_id(client)

    resp = await client.post(f"/posts/{pid}/likes")
    assert resp.status_code == 201
    body = resp.json()
    assert body["msg"] == "Liked!"
    assert body["like"]["user"] == "A"
    assert body["like"]["item"] == pid


@pytest.mark.asyncio
async def test_like_twice_conflicts(user_client, async_client: AsyncClient):
    client = await user_client("A")
    pid = await _post_id(client)

    assert (await client.post(f"/posts/{pid}/likes")).status_code == 201
    resp = await client.post(f"/posts/{pid}/likes")
    assert resp.status_code == 409

    count = await async_client.get(f"/posts/{pid}/likes")
    assert count.json() == {"likes": 1}


@pytest.mark.asyncio
async def test_like_nonexistent_post(user_client):
    client = await user_client("A")
    assert (await client.post("/posts/4242/likes")).status_code == 404


@pytest.mark.asyncio
async def test_like_requires_login(user_client, async_client: AsyncClient):
    pid = await _post_id(await user_client("A"))
    assert (await async_client.post(f"/posts/{pid}/likes")).status_code == 401


@pytest.mark.asyncio
async def test_unlike(user_client, async_client: AsyncClient):
    client = await user_client("A")
    pid = await _post_id(client)
    await client.post(f"/posts/{pid}/likes")

    resp = await client.delete(f"/posts/{pid}/likes")
    assert resp.status_code == 200
    assert resp.json() == {"msg": "Unliked!"}
    assert (await async_client.get(f"/posts/{pid}/likes")).json() == {"likes": 0}

    # nothing left to remove
    assert (await client.delete(f"/posts/{pid}/likes")).status_code == 404


@pytest.mark.asyncio
async def test_likes_by_user(user_client, async_client: AsyncClient):
    a = await user_client("A")
    b = await user_client("B")
    p1 = await _post_id(a)
    p2 = await _post_id(a)

    await b.post(f"/posts/{p1}/likes")
    await b.post(f"/posts/{p2}/likes")
    await a.post(f"/posts/{p1}/likes")

    resp = await async_client.get("/users/B/likes")
    assert resp.status_code == 200
    likes = resp.json()
    assert [like["item"] for like in likes] == [p2, p1]
    assert all(like["user"] == "B" for like in likes)

    assert (await async_client.get("/users/nobody/likes")).status_code == 404

"""
Comment endpoint tests — creating comments on existing posts only, listing
them, and author-only edits scoped to the parent post.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.models import Comment


async def _post_id(client: AsyncClient) -> int:
    resp = await client.post("/posts", json={"content": "a post"})
    assert resp.status_code == 201
    return resp.json()["post"]["id"]


@pytest.mark.asyncio
async def test_add_comment(user_client):
    client = await user_client("A")
    pid = await _post_id(client)

    resp = await client.post(f"/posts/{pid}/comments", json={"content": "Great post!"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["msg"] == "Comment successfully created!"
    assert body["comment"]["content"] == "Great post!"
    assert body["comment"]["author"] == "A"
    assert body["comment"]["item"] == pid


@pytest.mark.asyncio
async def test_comment_on_nonexistent_post(user_client, db_session: AsyncSession):
    client = await user_client("A")
    resp = await client.post("/posts/99999/comments", json={"content": "Ghost comment"})
    assert resp.status_code == 404

    count = (await db_session.execute(select(func.count()).select_from(Comment))).scalar_one()
    assert count == 0


@pytest.mark.asyncio
async def test_comment_requires_login(user_client, async_client: AsyncClient):
    pid = await _post_id(await user_client("A"))
    resp = await async_client.post(f"/posts/{pid}/comments", json={"content": "hi"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_comment_missing_content_field(user_client):
    client = await user_client("A")
    pid = await _post_id(client)
    resp = await client.post(f"/posts/{pid}/comments", json={})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_comments_oldest_first(user_client, async_client: AsyncClient):
    a = await user_client("A")
    b = await user_client("B")
    pid = await _post_id(a)

    for client, text in ((a, "one"), (b, "two"), (a, "three")):
        await client.post(f"/posts/{pid}/comments", json={"content": text})

    resp = await async_client.get(f"/posts/{pid}/comments")
    assert resp.status_code == 200
    comments = resp.json()
    assert [c["content"] for c in comments] == ["one", "two", "three"]
    assert [c["author"] for c in comments] == ["A", "B", "A"]


@pytest.mark.asyncio
async def test_list_comments_on_post_without_comments(user_client, async_client: AsyncClient):
    pid = await _post_id(await user_client("A"))
    resp = await async_client.get(f"/posts/{pid}/comments")
    assert resp.json() == []


@pytest.mark.asyncio
async def test_update_and_delete_own_comment(user_client, async_client: AsyncClient):
    client = await user_client("A")
    pid = await _post_id(client)
    created = await client.post(f"/posts/{pid}/comments", json={"content": "typo"})
    cid = created.json()["comment"]["id"]

    resp = await client.patch(f"/posts/{pid}/comments/{cid}", json={"content": "fixed"})
    assert resp.status_code == 200
    comments = (await async_client.get(f"/posts/{pid}/comments")).json()
    assert comments[0]["content"] == "fixed"

    resp = await client.delete(f"/posts/{pid}/comments/{cid}")
    assert resp.status_code == 200
    assert (await async_client.get(f"/posts/{pid}/comments")).json() == []


@pytest.mark.asyncio
async def test_other_user_cannot_edit_comment(user_client, async_client: AsyncClient):
    a = await user_client("A")
    b = await user_client("B")
    pid = await _post_id(a)
    cid = (await a.post(f"/posts/{pid}/comments", json={"content": "mine"})).json()["comment"]["id"]

    assert (await b.patch(f"/posts/{pid}/comments/{cid}", json={"content": "x"})).status_code == 403
    assert (await b.delete(f"/posts/{pid}/comments/{cid}")).status_code == 403

    comments = (await async_client.get(f"/posts/{pid}/comments")).json()
    assert comments[0]["content"] == "mine"


@pytest.mark.asyncio
async def test_comment_addressed_under_wrong_post(user_client):
    client = await user_client("A")
    pid = await _post_id(client)
    other_pid = await _post_id(client)
    cid = (await client.post(f"/posts/{pid}/comments", json={"content": "c"})).json()["comment"]["id"]

    resp = await client.delete(f"/posts/{other_pid}/comments/{cid}")
    assert resp.status_code == 404

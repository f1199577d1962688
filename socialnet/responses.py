"""
Response formatter — turns concept results into public payloads.

Concepts only know user ids; clients only know usernames.  Every helper
here swaps the id fields of a result for usernames, issuing one lookup per
call (lists are resolved in a single ``ids_to_usernames`` query).
"""
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.concepts import AuthenticatingConcept


class Responses:
    def __init__(self, authing: AuthenticatingConcept) -> None:
        self.authing = authing

    async def _replace(self, db: AsyncSession, docs: list[dict], *fields: str) -> list[dict]:
        ids = [doc[f] for doc in docs for f in fields]
        names = iter(await self.authing.ids_to_usernames(db, ids))
        out = []
        for doc in docs:
            doc = dict(doc)
            for f in fields:
                doc[f] = next(names)
            out.append(doc)
        return out

    async def post(self, db: AsyncSession, post: dict) -> dict:
        return (await self.posts(db, [post]))[0]

    async def posts(self, db: AsyncSession, posts: list[dict]) -> list[dict]:
        return await self._replace(db, posts, "author")

    async def comment(self, db: AsyncSession, comment: dict) -> dict:
        return (await self.comments(db, [comment]))[0]

    async def comments(self, db: AsyncSession, comments: list[dict]) -> list[dict]:
        return await self._replace(db, comments, "author")

    async def like(self, db: AsyncSession, like: dict) -> dict:
        return (await self.likes(db, [like]))[0]

    async def likes(self, db: AsyncSession, likes: list[dict]) -> list[dict]:
        return await self._replace(db, likes, "user")

    async def friend_requests(self, db: AsyncSession, requests: list[dict]) -> list[dict]:
        return await self._replace(db, requests, "from", "to")

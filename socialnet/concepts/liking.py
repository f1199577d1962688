"""
Liking concept — at most one like per (item, user).

``add_like`` checks for an existing row first, and the
``uq_likes_item_id_user_id`` constraint backs that check up when two
requests race; either path ends in ``ConflictError``.
"""
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.exceptions import ConflictError, NotFoundError
from socialnet.models import Like


def _like_to_dict(like: Like) -> dict:
    return {
        "id": like.id,
        "item": like.item_id,
        "user": like.user_id,
        "created_at": like.created_at.isoformat() if like.created_at else None,
    }


class LikingConcept:
    async def _find(self, db: AsyncSession, item: int, user: int) -> Like | None:
        result = await db.execute(
            select(Like).where(Like.item_id == item, Like.user_id == user)
        )
        return result.scalar_one_or_none()

    async def add_like(self, db: AsyncSession, item: int, user: int) -> dict:
        if await self._find(db, item, user) is not None:
            raise ConflictError(f"Item {item} is already liked!")

        like = Like(item_id=item, user_id=user)
        db.add(like)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError(f"Item {item} is already liked!") from exc
        await db.refresh(like)
        return {"msg": "Liked!", "like": _like_to_dict(like)}

    async def remove_like(self, db: AsyncSession, item: int, user: int) -> dict:
        like = await self._find(db, item, user)
        if like is None:
            raise NotFoundError("like", context={"item": item, "user": user})
        await db.delete(like)
        await db.flush()
        return {"msg": "Unliked!"}

    async def get_num_likes(self, db: AsyncSession, item: int) -> int:
        q = select(func.count()).select_from(Like).where(Like.item_id == item)
        return (await db.execute(q)).scalar_one()

    async def get_likes_by_user(self, db: AsyncSession, user: int) -> list[dict]:
        result = await db.execute(
            select(Like).where(Like.user_id == user).order_by(Like.id.desc())
        )
        return [_like_to_dict(like) for like in result.scalars().all()]

"""
Posting concept — posts owned by an author.

The author id is set once at creation; ``update`` only ever touches
``content`` and ``options``.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.exceptions import NotAuthorizedError, NotFoundError, ValidationError
from socialnet.models import Post


def _post_to_dict(post: Post) -> dict:
    return {
        "id": post.id,
        "author": post.author_id,
        "content": post.content,
        "options": post.options,
        "created_at": post.created_at.isoformat() if post.created_at else None,
        "updated_at": post.updated_at.isoformat() if post.updated_at else None,
    }


class PostingConcept:
    async def _get(self, db: AsyncSession, post_id: int) -> Post:
        post = await db.get(Post, post_id)
        if post is None:
            raise NotFoundError("post", post_id)
        return post

    async def create(
        self, db: AsyncSession, author: int, content: str, options: dict | None = None
    ) -> dict:
        if not content:
            raise ValidationError("Post content must be non-empty!", field="content")
        post = Post(author_id=author, content=content, options=options)
        db.add(post)
        await db.flush()
        await db.refresh(post)
        return {"msg": "Post successfully created!", "post": _post_to_dict(post)}

    async def get_posts(self, db: AsyncSession) -> list[dict]:
        """Return every post, newest first."""
        result = await db.execute(select(Post).order_by(Post.id.desc()))
        return [_post_to_dict(p) for p in result.scalars().all()]

    async def get_by_author(self, db: AsyncSession, author: int) -> list[dict]:
        result = await db.execute(
            select(Post).where(Post.author_id == author).order_by(Post.id.desc())
        )
        return [_post_to_dict(p) for p in result.scalars().all()]

    async def get_post(self, db: AsyncSession, post_id: int) -> dict:
        return _post_to_dict(await self._get(db, post_id))

    async def update(
        self,
        db: AsyncSession,
        post_id: int,
        content: str | None = None,
        options: dict | None = None,
    ) -> dict:
        """Apply only the fields that were supplied."""
        post = await self._get(db, post_id)
        if content is not None:
            if not content:
                raise ValidationError("Post content must be non-empty!", field="content")
            post.content = content
        if options is not None:
            post.options = options
        await db.flush()
        await db.refresh(post)
        return {"msg": "Post successfully updated!"}

    async def delete(self, db: AsyncSession, post_id: int) -> dict:
        post = await self._get(db, post_id)
        await db.delete(post)
        await db.flush()
        return {"msg": "Post deleted successfully!"}

    async def assert_author_is_user(self, db: AsyncSession, post_id: int, user: int) -> None:
        post = await self._get(db, post_id)
        if post.author_id != user:
            raise NotAuthorizedError(
                f"You are not the author of post {post_id}!",
                context={"post_id": post_id, "author_id": post.author_id, "user_id": user},
            )

    async def assert_post_exists(self, db: AsyncSession, post_id: int) -> None:
        await self._get(db, post_id)

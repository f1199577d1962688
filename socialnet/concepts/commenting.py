"""
Commenting concept — comments attached to an item.

The concept only stores the parent item's id; whether that item exists is
the caller's business (the route layer asks the Posting concept first).
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.exceptions import NotAuthorizedError, NotFoundError, ValidationError
from socialnet.models import Comment


def _comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "item": comment.item_id,
        "author": comment.author_id,
        "content": comment.content,
        "options": comment.options,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "updated_at": comment.updated_at.isoformat() if comment.updated_at else None,
    }


class CommentingConcept:
    async def _get(self, db: AsyncSession, comment_id: int) -> Comment:
        comment = await db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("comment", comment_id)
        return comment

    async def create(
        self,
        db: AsyncSession,
        item: int,
        author: int,
        content: str,
        options: dict | None = None,
    ) -> dict:
        if not content:
            raise ValidationError("Comment content must be non-empty!", field="content")
        comment = Comment(item_id=item, author_id=author, content=content, options=options)
        db.add(comment)
        await db.flush()
        await db.refresh(comment)
        return {"msg": "Comment successfully created!", "comment": _comment_to_dict(comment)}

    async def get_by_item(self, db: AsyncSession, item: int) -> list[dict]:
        """Return the comments on *item*, oldest first."""
        result = await db.execute(
            select(Comment).where(Comment.item_id == item).order_by(Comment.id)
        )
        return [_comment_to_dict(c) for c in result.scalars().all()]

    async def update(
        self,
        db: AsyncSession,
        comment_id: int,
        content: str | None = None,
        options: dict | None = None,
    ) -> dict:
        comment = await self._get(db, comment_id)
        if content is not None:
            if not content:
                raise ValidationError("Comment content must be non-empty!", field="content")
            comment.content = content
        if options is not None:
            comment.options = options
        await db.flush()
        await db.refresh(comment)
        return {"msg": "Comment successfully updated!"}

    async def delete(self, db: AsyncSession, comment_id: int) -> dict:
        comment = await self._get(db, comment_id)
        await db.delete(comment)
        await db.flush()
        return {"msg": "Comment deleted successfully!"}

    async def assert_author_is_user(self, db: AsyncSession, comment_id: int, user: int) -> None:
        comment = await self._get(db, comment_id)
        if comment.author_id != user:
            raise NotAuthorizedError(
                f"You are not the author of comment {comment_id}!",
                context={"comment_id": comment_id, "author_id": comment.author_id, "user_id": user},
            )

    async def assert_on_item(self, db: AsyncSession, comment_id: int, item: int) -> None:
        """Raise NotFoundError unless *comment_id* is attached to *item*."""
        comment = await self._get(db, comment_id)
        if comment.item_id != item:
            raise NotFoundError("comment", comment_id, context={"item": item})

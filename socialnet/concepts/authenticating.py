"""
Authenticating concept — users and their credentials.

Design notes
------------
- Passwords are hashed with passlib's ``CryptContext``; the hash never
  leaves this module (``_user_to_dict`` is the only serialiser).
- Username uniqueness is checked before every write and also enforced by
  the unique constraint on ``users.username``; a concurrent insert that
  slips past the check surfaces as ``ConflictError`` via the
  ``IntegrityError`` handler in ``_flush``.
- Functions flush but do not commit; the transaction boundary is owned
  by ``get_db``.
"""
import logging

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.exceptions import (
    ConflictError,
    NotAuthenticatedError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from socialnet.models import User

logger = logging.getLogger(__name__)

DELETED_USER = "DELETED_USER"


def _user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


class AuthenticatingConcept:
    def __init__(self, pwd_context: CryptContext | None = None) -> None:
        self.pwd_context = pwd_context or CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get(self, db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    async def _get_by_username(self, db: AsyncSession, username: str) -> User | None:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def _assert_username_unique(self, db: AsyncSession, username: str) -> None:
        if await self._get_by_username(db, username) is not None:
            raise ConflictError(f"User with username {username} already exists!")

    @staticmethod
    def _assert_good_credentials(username: str, password: str) -> None:
        if not username or not password:
            raise ValidationError("Username and password must be non-empty!")

    async def _flush(self, db: AsyncSession, username: str) -> None:
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError(f"User with username {username} already exists!") from exc

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def create(self, db: AsyncSession, username: str, password: str) -> dict:
        self._assert_good_credentials(username, password)
        await self._assert_username_unique(db, username)

        user = User(username=username, password_hash=self.pwd_context.hash(password))
        db.add(user)
        await self._flush(db, username)
        await db.refresh(user)

        logger.info("Created user id=%s username=%r", user.id, username)
        return {"msg": "User created successfully!", "user": _user_to_dict(user)}

    async def get_user_by_id(self, db: AsyncSession, user_id: int) -> dict:
        return _user_to_dict(await self._get(db, user_id))

    async def get_user_by_username(self, db: AsyncSession, username: str) -> dict:
        user = await self._get_by_username(db, username)
        if user is None:
            raise NotFoundError("user", username)
        return _user_to_dict(user)

    async def get_users(self, db: AsyncSession) -> list[dict]:
        result = await db.execute(select(User).order_by(User.id))
        return [_user_to_dict(u) for u in result.scalars().all()]

    async def ids_to_usernames(self, db: AsyncSession, ids: list[int]) -> list[str]:
        """
        Map *ids* to usernames, preserving order.

        Ids whose user has since been deleted map to ``DELETED_USER`` so
        that content outliving its author can still be rendered.
        """
        if not ids:
            return []
        result = await db.execute(select(User.id, User.username).where(User.id.in_(set(ids))))
        names = {row.id: row.username for row in result.all()}
        return [names.get(i, DELETED_USER) for i in ids]

    async def authenticate(self, db: AsyncSession, username: str, password: str) -> dict:
        user = await self._get_by_username(db, username)
        if user is None or not self.pwd_context.verify(password, user.password_hash):
            raise NotAuthenticatedError("Username or password is incorrect.")
        return _user_to_dict(user)

    async def update_username(self, db: AsyncSession, user_id: int, username: str) -> dict:
        if not username:
            raise ValidationError("Username must be non-empty!", field="username")
        user = await self._get(db, user_id)
        if user.username != username:
            await self._assert_username_unique(db, username)
            user.username = username
            await self._flush(db, username)
        return {"msg": "Updated username successfully!"}

    async def update_password(
        self, db: AsyncSession, user_id: int, current_password: str, new_password: str
    ) -> dict:
        if not new_password:
            raise ValidationError("Password must be non-empty!", field="new_password")
        user = await self._get(db, user_id)
        if not self.pwd_context.verify(current_password, user.password_hash):
            raise NotAuthorizedError("The given current password is wrong!")
        user.password_hash = self.pwd_context.hash(new_password)
        await db.flush()
        return {"msg": "Updated password successfully!"}

    async def delete(self, db: AsyncSession, user_id: int) -> dict:
        user = await self._get(db, user_id)
        await db.delete(user)
        await db.flush()
        logger.info("Deleted user id=%s", user_id)
        return {"msg": "User deleted!"}

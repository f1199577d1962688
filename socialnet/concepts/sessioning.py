"""
Sessioning concept — login state bound to the request's session.

The session is the dict Starlette's ``SessionMiddleware`` exposes as
``request.session``.  It only carries an opaque token; the login itself is
a row in the ``sessions`` table.  Ending a session deletes that row, so a
copy of the cookie kept elsewhere stops working as soon as the owner logs
out or deletes their account.
"""
import logging
import secrets
from typing import MutableMapping

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.exceptions import AlreadyAuthenticatedError, NotAuthenticatedError
from socialnet.models import LoginSession

logger = logging.getLogger(__name__)

SessionDoc = MutableMapping[str, object]

_TOKEN_KEY = "sid"


class SessioningConcept:
    async def _resolve(self, db: AsyncSession, session: SessionDoc) -> int | None:
        token = session.get(_TOKEN_KEY)
        if token is None:
            return None
        result = await db.execute(
            select(LoginSession.user_id).where(LoginSession.token == token)
        )
        user_id = result.scalar_one_or_none()
        if user_id is None:
            # Revoked server side; drop the dead token from the cookie.
            session.pop(_TOKEN_KEY, None)
        return user_id

    async def start(self, db: AsyncSession, session: SessionDoc, user_id: int) -> None:
        await self.is_logged_out(db, session)
        token = secrets.token_urlsafe(32)
        db.add(LoginSession(token=token, user_id=user_id))
        await db.flush()
        session[_TOKEN_KEY] = token
        logger.info("Session started for user id=%s", user_id)

    async def end(self, db: AsyncSession, session: SessionDoc) -> None:
        user_id = await self.get_user(db, session)
        token = session.pop(_TOKEN_KEY)
        await db.execute(delete(LoginSession).where(LoginSession.token == token))
        logger.info("Session ended for user id=%s", user_id)

    async def end_all(self, db: AsyncSession, user_id: int) -> int:
        """Revoke every session of *user_id*; returns how many were open."""
        result = await db.execute(delete(LoginSession).where(LoginSession.user_id == user_id))
        if result.rowcount:
            logger.info("Revoked %d session(s) for user id=%s", result.rowcount, user_id)
        return result.rowcount

    async def get_user(self, db: AsyncSession, session: SessionDoc) -> int:
        user_id = await self._resolve(db, session)
        if user_id is None:
            raise NotAuthenticatedError()
        return user_id

    async def is_logged_in(self, db: AsyncSession, session: SessionDoc) -> None:
        await self.get_user(db, session)

    async def is_logged_out(self, db: AsyncSession, session: SessionDoc) -> None:
        if await self._resolve(db, session) is not None:
            raise AlreadyAuthenticatedError()

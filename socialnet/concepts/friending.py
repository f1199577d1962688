"""
Friending concept — friend requests and friendships.

States per pair of users (A, B)::

    none ──send(A→B)──▶ A→B pending ──accept──▶ friends
      ▲                      │                     │
      └──reject / remove ────┘                     │
      └───────────────── remove_friend ────────────┘

Design notes
------------
- Only one pending request may exist per unordered pair: sending A→B while
  B→A is pending is a conflict, the recipient should accept instead.  The
  ``uq_friend_requests_pending_pair`` index holds the same rule per
  direction when two sends race, and ``uq_friendships_pair`` does so for
  two accepts; both surface as ``ConflictError``.
- Accepting or rejecting consumes the request; the row is kept with status
  ``accepted`` / ``rejected`` as history and no longer counts as pending.
  ``remove_request`` is the sender withdrawing, and deletes the row.
- Friendships are symmetric and stored once, ordered as
  (min(a, b), max(a, b)).
"""
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.exceptions import ConflictError, NotFoundError, ValidationError
from socialnet.models import FriendRequest, Friendship

PENDING = "pending"
ACCEPTED = "accepted"
REJECTED = "rejected"


def _request_to_dict(request: FriendRequest) -> dict:
    return {
        "id": request.id,
        "from": request.from_id,
        "to": request.to_id,
        "status": request.status,
        "created_at": request.created_at.isoformat() if request.created_at else None,
    }


def _ordered(u1: int, u2: int) -> tuple[int, int]:
    return (u1, u2) if u1 < u2 else (u2, u1)


class FriendingConcept:
    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _pending(self, db: AsyncSession, from_id: int, to_id: int) -> FriendRequest | None:
        result = await db.execute(
            select(FriendRequest).where(
                FriendRequest.from_id == from_id,
                FriendRequest.to_id == to_id,
                FriendRequest.status == PENDING,
            )
        )
        return result.scalar_one_or_none()

    async def _require_pending(self, db: AsyncSession, from_id: int, to_id: int) -> FriendRequest:
        request = await self._pending(db, from_id, to_id)
        if request is None:
            raise NotFoundError(
                "friend request", context={"from": from_id, "to": to_id}
            )
        return request

    async def _friendship(self, db: AsyncSession, u1: int, u2: int) -> Friendship | None:
        low, high = _ordered(u1, u2)
        result = await db.execute(
            select(Friendship).where(Friendship.user1_id == low, Friendship.user2_id == high)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def get_requests(self, db: AsyncSession, user: int) -> list[dict]:
        """Pending requests the user has sent or received, oldest first."""
        result = await db.execute(
            select(FriendRequest)
            .where(
                FriendRequest.status == PENDING,
                or_(FriendRequest.from_id == user, FriendRequest.to_id == user),
            )
            .order_by(FriendRequest.id)
        )
        return [_request_to_dict(r) for r in result.scalars().all()]

    async def send_request(self, db: AsyncSession, from_id: int, to_id: int) -> dict:
        if from_id == to_id:
            raise ValidationError("You cannot send a friend request to yourself!")
        if await self._friendship(db, from_id, to_id) is not None:
            raise ConflictError("You are already friends!")
        if (
            await self._pending(db, from_id, to_id) is not None
            or await self._pending(db, to_id, from_id) is not None
        ):
            raise ConflictError("A friend request between these users already exists!")

        db.add(FriendRequest(from_id=from_id, to_id=to_id, status=PENDING))
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError("A friend request between these users already exists!") from exc
        return {"msg": "Sent request!"}

    async def accept_request(self, db: AsyncSession, from_id: int, to_id: int) -> dict:
        request = await self._require_pending(db, from_id, to_id)
        request.status = ACCEPTED
        low, high = _ordered(from_id, to_id)
        db.add(Friendship(user1_id=low, user2_id=high))
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError("You are already friends!") from exc
        return {"msg": "Accepted request!"}

    async def reject_request(self, db: AsyncSession, from_id: int, to_id: int) -> dict:
        request = await self._require_pending(db, from_id, to_id)
        request.status = REJECTED
        await db.flush()
        return {"msg": "Rejected request!"}

    async def remove_request(self, db: AsyncSession, from_id: int, to_id: int) -> dict:
        request = await self._require_pending(db, from_id, to_id)
        await db.delete(request)
        await db.flush()
        return {"msg": "Removed request!"}

    # ------------------------------------------------------------------
    # Friendships
    # ------------------------------------------------------------------

    async def get_friends(self, db: AsyncSession, user: int) -> list[int]:
        result = await db.execute(
            select(Friendship)
            .where(or_(Friendship.user1_id == user, Friendship.user2_id == user))
            .order_by(Friendship.id)
        )
        return [
            f.user2_id if f.user1_id == user else f.user1_id
            for f in result.scalars().all()
        ]

    async def remove_friend(self, db: AsyncSession, user: int, friend: int) -> dict:
        friendship = await self._friendship(db, user, friend)
        if friendship is None:
            raise NotFoundError("friendship", context={"user": user, "friend": friend})
        await db.delete(friendship)
        await db.flush()
        return {"msg": "Unfriended!"}

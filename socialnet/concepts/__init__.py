# Concepts package.
#
# Each module holds one independently persisted concept:
#
#   authenticating  — users, credentials, username <-> id lookup
#   sessioning      — server-side login sessions keyed by a cookie token
#   posting         — posts and their ownership
#   commenting      — comments attached to an item
#   liking          — one like per (item, user)
#   friending       — friend requests and friendships
#
# Concepts never import each other.  Persisted concepts take an
# AsyncSession as the first argument of every operation so that the route
# layer controls the transaction boundary: ``get_db`` opens it and
# ``Routes`` commits each write before responding.
# Instances are built once in ``socialnet.main`` and handed to ``Routes``.
from socialnet.concepts.authenticating import AuthenticatingConcept
from socialnet.concepts.commenting import CommentingConcept
from socialnet.concepts.friending import FriendingConcept
from socialnet.concepts.liking import LikingConcept
from socialnet.concepts.posting import PostingConcept
from socialnet.concepts.sessioning import SessioningConcept

__all__ = [
    "AuthenticatingConcept",
    "CommentingConcept",
    "FriendingConcept",
    "LikingConcept",
    "PostingConcept",
    "SessioningConcept",
]

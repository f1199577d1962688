"""
Route layer — synchronizes the concepts behind the HTTP surface.

Every handler follows the same shape: resolve the caller from the session,
let the owning concept check authorization, call one or two concept
operations, and pass the result through ``Responses``.  Concept errors are
never caught here; ``socialnet.exceptions`` maps them to status codes.

Handlers are plain methods on ``Routes``; ``Routes.table`` lists which
(method, path) each one serves and ``build_router`` binds that table onto
an ``APIRouter``.  Request bodies are validated by the pydantic models in
``socialnet.schemas`` before a handler runs.

Write handlers commit through ``Routes._commit`` before returning, and
cached feeds are invalidated only after that commit.

Sequences that span two concepts are not atomic.  Creating a comment or a
like first asserts the post exists and then writes, so a post deleted in
between leaves an orphaned comment or like behind.
"""
from dataclasses import dataclass
from typing import Any, Callable

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.cache import CacheManager
from socialnet.concepts import (
    AuthenticatingConcept,
    CommentingConcept,
    FriendingConcept,
    LikingConcept,
    PostingConcept,
    SessioningConcept,
)
from socialnet.concepts.sessioning import SessionDoc
from socialnet.database import get_db
from socialnet.dependencies import get_session
from socialnet.responses import Responses
from socialnet.schemas import (
    CommentCreate,
    CommentOptions,
    CommentUpdate,
    Credentials,
    PasswordUpdate,
    PostCreate,
    PostOptions,
    PostUpdate,
    UsernameUpdate,
)


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    endpoint: Callable[..., Any]
    status_code: int = 200


def _options(model: PostOptions | CommentOptions | None) -> dict | None:
    return model.model_dump() if model is not None else None


class Routes:
    def __init__(
        self,
        sessioning: SessioningConcept,
        authing: AuthenticatingConcept,
        posting: PostingConcept,
        commenting: CommentingConcept,
        liking: LikingConcept,
        friending: FriendingConcept,
        cache: CacheManager,
        feed_ttl: int | None = None,
    ) -> None:
        self.sessioning = sessioning
        self.authing = authing
        self.posting = posting
        self.commenting = commenting
        self.liking = liking
        self.friending = friending
        self.cache = cache
        self.feed_ttl = feed_ttl
        self.responses = Responses(authing)

    async def _commit(self, db: AsyncSession, invalidate_feed: bool = False) -> None:
        # get_db may only close the transaction after the response is sent;
        # commit first so the caller's next request sees the write, and drop
        # cached feeds only once it is durable.
        await db.commit()
        if invalidate_feed:
            await self.cache.invalidate_feed()

    # ------------------------------------------------------------------
    # Session / users
    # ------------------------------------------------------------------

    async def get_session_user(
        self,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        return await self.authing.get_user_by_id(db, user)

    async def get_users(self, db: AsyncSession = Depends(get_db)):
        return await self.authing.get_users(db)

    async def get_user(self, username: str, db: AsyncSession = Depends(get_db)):
        return await self.authing.get_user_by_username(db, username)

    async def create_user(
        self,
        data: Credentials,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        await self.sessioning.is_logged_out(db, session)
        result = await self.authing.create(db, data.username, data.password)
        await self._commit(db)
        return result

    async def update_username(
        self,
        data: UsernameUpdate,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        result = await self.authing.update_username(db, user, data.username)
        await self._commit(db, invalidate_feed=True)
        return result

    async def update_password(
        self,
        data: PasswordUpdate,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        result = await self.authing.update_password(
            db, user, data.current_password, data.new_password
        )
        await self._commit(db)
        return result

    async def delete_user(
        self,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        await self.sessioning.end(db, session)
        await self.sessioning.end_all(db, user)
        result = await self.authing.delete(db, user)
        await self._commit(db, invalidate_feed=True)
        return result

    async def log_in(
        self,
        data: Credentials,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        await self.sessioning.is_logged_out(db, session)
        user = await self.authing.authenticate(db, data.username, data.password)
        await self.sessioning.start(db, session, user["id"])
        await self._commit(db)
        return {"msg": "Logged in!"}

    async def log_out(
        self,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        await self.sessioning.end(db, session)
        await self._commit(db)
        return {"msg": "Logged out!"}

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    async def get_posts(self, author: str | None = None, db: AsyncSession = Depends(get_db)):
        """
        List posts, optionally by one author, each with its like count and
        comments attached.

        Enrichment costs two reads per post; the assembled feed is cached
        until the next write that could change it.
        """
        key = self.cache.feed_key(author)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        if author:
            user = await self.authing.get_user_by_username(db, author)
            posts = await self.posting.get_by_author(db, user["id"])
        else:
            posts = await self.posting.get_posts(db)
        posts = await self.responses.posts(db, posts)

        feed = []
        for post in posts:
            num_likes = await self.liking.get_num_likes(db, post["id"])
            comments = await self.commenting.get_by_item(db, post["id"])
            feed.append(
                {**post, "likes": num_likes, "comments": await self.responses.comments(db, comments)}
            )

        await self.cache.set(key, feed, ttl=self.feed_ttl)
        return feed

    async def create_post(
        self,
        data: PostCreate,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        created = await self.posting.create(db, user, data.content, _options(data.options))
        await self._commit(db, invalidate_feed=True)
        return {"msg": created["msg"], "post": await self.responses.post(db, created["post"])}

    async def update_post(
        self,
        post_id: int,
        data: PostUpdate,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        await self.posting.assert_author_is_user(db, post_id, user)
        result = await self.posting.update(db, post_id, data.content, _options(data.options))
        await self._commit(db, invalidate_feed=True)
        return result

    async def delete_post(
        self,
        post_id: int,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        await self.posting.assert_author_is_user(db, post_id, user)
        result = await self.posting.delete(db, post_id)
        await self._commit(db, invalidate_feed=True)
        return result

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def get_comments_on_post(self, pid: int, db: AsyncSession = Depends(get_db)):
        comments = await self.commenting.get_by_item(db, pid)
        return await self.responses.comments(db, comments)

    async def create_comment_on_post(
        self,
        pid: int,
        data: CommentCreate,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        await self.posting.assert_post_exists(db, pid)
        created = await self.commenting.create(db, pid, user, data.content, _options(data.options))
        await self._commit(db, invalidate_feed=True)
        return {
            "msg": created["msg"],
            "comment": await self.responses.comment(db, created["comment"]),
        }

    async def update_comment_on_post(
        self,
        pid: int,
        comment_id: int,
        data: CommentUpdate,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        await self.commenting.assert_on_item(db, comment_id, pid)
        await self.commenting.assert_author_is_user(db, comment_id, user)
        result = await self.commenting.update(
            db, comment_id, data.content, _options(data.options)
        )
        await self._commit(db, invalidate_feed=True)
        return result

    async def delete_comment_on_post(
        self,
        pid: int,
        comment_id: int,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        await self.commenting.assert_on_item(db, comment_id, pid)
        await self.commenting.assert_author_is_user(db, comment_id, user)
        result = await self.commenting.delete(db, comment_id)
        await self._commit(db, invalidate_feed=True)
        return result

    # ------------------------------------------------------------------
    # Likes
    # ------------------------------------------------------------------

    async def get_likes(self, username: str, db: AsyncSession = Depends(get_db)):
        user = await self.authing.get_user_by_username(db, username)
        likes = await self.liking.get_likes_by_user(db, user["id"])
        return await self.responses.likes(db, likes)

    async def get_num_likes_on_post(self, pid: int, db: AsyncSession = Depends(get_db)):
        return {"likes": await self.liking.get_num_likes(db, pid)}

    async def add_like_on_post(
        self,
        pid: int,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        await self.posting.assert_post_exists(db, pid)
        liked = await self.liking.add_like(db, pid, user)
        await self._commit(db, invalidate_feed=True)
        return {"msg": liked["msg"], "like": await self.responses.like(db, liked["like"])}

    async def remove_like_on_post(
        self,
        pid: int,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        await self.posting.assert_post_exists(db, pid)
        result = await self.liking.remove_like(db, pid, user)
        await self._commit(db, invalidate_feed=True)
        return result

    # ------------------------------------------------------------------
    # Friends
    # ------------------------------------------------------------------

    async def _user_id(self, db: AsyncSession, username: str) -> int:
        return (await self.authing.get_user_by_username(db, username))["id"]

    async def get_friends(
        self,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        return await self.authing.ids_to_usernames(db, await self.friending.get_friends(db, user))

    async def remove_friend(
        self,
        friend: str,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        result = await self.friending.remove_friend(db, user, await self._user_id(db, friend))
        await self._commit(db)
        return result

    async def get_requests(
        self,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        requests = await self.friending.get_requests(db, user)
        return await self.responses.friend_requests(db, requests)

    async def send_friend_request(
        self,
        to: str,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        result = await self.friending.send_request(db, user, await self._user_id(db, to))
        await self._commit(db)
        return result

    async def remove_friend_request(
        self,
        to: str,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        result = await self.friending.remove_request(db, user, await self._user_id(db, to))
        await self._commit(db)
        return result

    async def accept_friend_request(
        self,
        sender: str,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        result = await self.friending.accept_request(db, await self._user_id(db, sender), user)
        await self._commit(db)
        return result

    async def reject_friend_request(
        self,
        sender: str,
        session: SessionDoc = Depends(get_session),
        db: AsyncSession = Depends(get_db),
    ):
        user = await self.sessioning.get_user(db, session)
        result = await self.friending.reject_request(db, await self._user_id(db, sender), user)
        await self._commit(db)
        return result

    # ------------------------------------------------------------------
    # Route table
    # ------------------------------------------------------------------

    def table(self) -> list[Route]:
        return [
            Route("GET", "/session", self.get_session_user),
            Route("GET", "/users", self.get_users),
            Route("GET", "/users/{username}", self.get_user),
            Route("POST", "/users", self.create_user, 201),
            Route("PATCH", "/users/username", self.update_username),
            Route("PATCH", "/users/password", self.update_password),
            Route("DELETE", "/users", self.delete_user),
            Route("POST", "/login", self.log_in),
            Route("POST", "/logout", self.log_out),
            Route("GET", "/posts", self.get_posts),
            Route("POST", "/posts", self.create_post, 201),
            Route("PATCH", "/posts/{post_id}", self.update_post),
            Route("DELETE", "/posts/{post_id}", self.delete_post),
            Route("GET", "/posts/{pid}/comments", self.get_comments_on_post),
            Route("POST", "/posts/{pid}/comments", self.create_comment_on_post, 201),
            Route("PATCH", "/posts/{pid}/comments/{comment_id}", self.update_comment_on_post),
            Route("DELETE", "/posts/{pid}/comments/{comment_id}", self.delete_comment_on_post),
            Route("GET", "/users/{username}/likes", self.get_likes),
            Route("GET", "/posts/{pid}/likes", self.get_num_likes_on_post),
            Route("POST", "/posts/{pid}/likes", self.add_like_on_post, 201),
            Route("DELETE", "/posts/{pid}/likes", self.remove_like_on_post),
            Route("GET", "/friends", self.get_friends),
            Route("DELETE", "/friends/{friend}", self.remove_friend),
            Route("GET", "/friend/requests", self.get_requests),
            Route("POST", "/friend/requests/{to}", self.send_friend_request, 201),
            Route("DELETE", "/friend/requests/{to}", self.remove_friend_request),
            Route("PUT", "/friend/accept/{sender}", self.accept_friend_request),
            Route("PUT", "/friend/reject/{sender}", self.reject_friend_request),
        ]


def build_router(routes: Routes) -> APIRouter:
    router = APIRouter()
    for route in routes.table():
        router.add_api_route(
            route.path,
            route.endpoint,
            methods=[route.method],
            status_code=route.status_code,
            name=route.endpoint.__name__,
        )
    return router

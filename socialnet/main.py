import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from socialnet.cache import CacheManager, cache
from socialnet.concepts import (
    AuthenticatingConcept,
    CommentingConcept,
    FriendingConcept,
    LikingConcept,
    PostingConcept,
    SessioningConcept,
)
from socialnet.config import settings
from socialnet.exceptions import register_exception_handlers
from socialnet.middleware import RequestMetricsMiddleware
from socialnet.routes import Routes, build_router

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_routes(cache_manager: CacheManager) -> Routes:
    """Build each concept once and hand them to the route layer."""
    return Routes(
        sessioning=SessioningConcept(),
        authing=AuthenticatingConcept(),
        posting=PostingConcept(),
        commenting=CommentingConcept(),
        liking=LikingConcept(),
        friending=FriendingConcept(),
        cache=cache_manager,
        feed_ttl=settings.CACHE_TTL_FEED,
    )


def create_app(cache_manager: CacheManager = cache) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        try:
            await cache_manager.connect()
        except Exception as exc:
            logger.warning("Feed cache unavailable, continuing without Redis: %s", exc)
        yield
        # Shutdown
        await cache_manager.disconnect()

    app = FastAPI(
        title="Social Network API",
        description="Users, posts, comments, likes and friends, composed from independent concepts",
        version=VERSION,
        lifespan=lifespan,
    )

    # Middleware (last added is outermost)
    app.add_middleware(RequestMetricsMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        session_cookie=settings.SESSION_COOKIE,
        max_age=settings.SESSION_MAX_AGE,
        same_site="lax",
        https_only=settings.APP_ENV == "production",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(build_router(create_routes(cache_manager)))

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": VERSION, "cache": cache_manager.stats}

    return app


app = create_app()

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from socialnet.config import settings
from socialnet.middleware import install_query_counter

# Tests swap in their own engine and session factory; see tests/conftest.py.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG and settings.APP_ENV != "production",
    pool_pre_ping=True,
)
install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def create_tables(bind: AsyncEngine = engine, drop_first: bool = False) -> None:
    """Create every concept's table (optionally dropping them first)."""
    import socialnet.models  # noqa: F401  registers the tables on Base.metadata

    async with bind.begin() as conn:
        if drop_first:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """One session, and one transaction, per request."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

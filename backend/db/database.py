from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from core.config import Settings


class Base(DeclarativeBase):
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """Async engine with a bounded connection pool (SQLite manages its own pool)."""
    kwargs = {"echo": settings.database_echo}
    url = make_url(settings.database_url)
    if url.get_backend_name() != "sqlite":
        kwargs.update(pool_size=settings.db_pool_size, max_overflow=0, pool_pre_ping=True)
    return create_async_engine(url, **kwargs)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_db_and_tables(engine: AsyncEngine):
    # make sure the mapped tables are registered on Base.metadata
    from db import inventory_item  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

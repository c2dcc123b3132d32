"""Database engine, sessions and schema setup."""
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from middleman.config import settings

Base = declarative_base()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for PostgreSQL or SQLite.

    In-memory SQLite gets a single shared connection, otherwise every
    session would see its own empty database.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            kwargs["poolclass"] = StaticPool
        return create_async_engine(url, echo=echo, **kwargs)

    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory used by PostgresOfferStore."""
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


engine = build_engine(settings.database_url, echo=settings.log_level == "DEBUG")
async_session_factory = build_session_factory(engine)


async def create_schema(target: AsyncEngine) -> None:
    """Create every table registered on Base.metadata."""
    from middleman.infrastructure import models  # noqa: F401

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """Initialize database (create tables)."""
    await create_schema(engine)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()

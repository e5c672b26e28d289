"""
Database engine and session management.

One session is one procedure call: it commits when the procedure returns and
rolls back when it raises, so no partial state is ever persisted.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.core.config import get_settings

settings = get_settings()


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine.

    SQLite connections may be used from any thread, and an in-memory SQLite
    database is pinned to a single shared connection so every session sees
    the same tables.
    """
    url = make_url(database_url)
    kwargs = {"echo": echo}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    return create_async_engine(url, **kwargs)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url, echo=settings.debug)
async_session_factory = build_session_factory(engine)


async def create_tables(bind: AsyncEngine) -> None:
    import app.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def init_db():
    """Create all tables on the application engine."""
    await create_tables(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one committed or rolled-back session per request."""
    async with get_session_context() as session:
        yield session


@asynccontextmanager
async def get_session_context(factory: async_sessionmaker | None = None):
    """Session scope for scripts and tests, outside the request lifecycle."""
    async with (factory or async_session_factory)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

"""
Tests for engine construction and session scoping.
"""

from __future__ import annotations

import pytest
from sqlalchemy.pool import StaticPool

from app.core.database import (
    build_engine,
    build_session_factory,
    create_tables,
    get_session_context,
)
from app.models.user_account import UserAccount


@pytest.mark.asyncio
class TestDatabase:

    async def test_in_memory_sqlite_is_shared_across_sessions(self):
        engine = build_engine("sqlite+aiosqlite://")
        assert isinstance(engine.pool, StaticPool)
        factory = build_session_factory(engine)
        await create_tables(engine)

        async with get_session_context(factory) as session:
            session.add(UserAccount(identity="alice", display_name="Alice", email="a@x.io"))
        async with get_session_context(factory) as session:
            assert await session.get(UserAccount, "alice") is not None
        await engine.dispose()

    async def test_file_sqlite_uses_regular_pool(self, tmp_path):
        engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'signdir.db'}")
        assert not isinstance(engine.pool, StaticPool)
        await engine.dispose()

    async def test_session_rolls_back_on_error(self, session_factory):
        with pytest.raises(RuntimeError):
            async with get_session_context(session_factory) as session:
                session.add(UserAccount(identity="bob", display_name="Bob", email="b@x.io"))
                await session.flush()
                raise RuntimeError("boom")

        async with get_session_context(session_factory) as session:
            assert await session.get(UserAccount, "bob") is None

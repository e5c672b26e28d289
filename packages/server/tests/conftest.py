"""
Shared fixtures: a fresh in-memory database per test and helpers that run
service procedures the way the API does (one committed session per call).
"""

import os

# Settings are read at import time
os.environ.setdefault("SD_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SD_SECRET_KEY", "test-secret-key-for-signdir-tests-only")
os.environ.setdefault("SD_LOG_FORMAT", "text")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

import app.models  # noqa: F401
from app.core.database import (
    build_engine,
    build_session_factory,
    create_tables,
    get_session_context,
)
from app.models.user_account import UserAccount
from app.services.accounts import create_account
from app.services.companies import create_company
from app.services.connections import accept_connection, request_connection
from app.services.members import add_colleague, update_user_role
from signdir_shared.schemas.common import Role


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def call(session_factory):
    """Run one procedure in its own transaction: commit on success, roll back on error."""

    async def _call(fn, *args, **kwargs):
        async with get_session_context(session_factory) as session:
            return await fn(*args, session=session, **kwargs)

    return _call


@pytest.fixture
def get_row(session_factory):
    """Load a row by primary key from a fresh session (None if absent)."""

    async def _get(model, key):
        async with session_factory() as session:
            return await session.get(model, key)

    return _get


@pytest.fixture
def query(session_factory):
    """Run a select statement and return all scalar results."""

    async def _query(stmt):
        async with session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    return _query


async def _ensure_account(identity: str, session: AsyncSession) -> UserAccount:
    account = await session.get(UserAccount, identity)
    if account:
        return account
    return await create_account(
        identity, identity.title(), f"{identity}@example.com", session
    )


@pytest.fixture
def register(call):
    async def _register(identity: str) -> UserAccount:
        return await call(_ensure_account, identity)

    return _register


@pytest.fixture
def make_company(call, register):
    """Register ``owner`` and create a company they own (it becomes their active company)."""

    async def _make(owner: str, slug: str, location: str = "Springfield"):
        await register(owner)
        return await call(create_company, owner, slug.title(), slug, location)

    return _make


@pytest.fixture
def add_member(call, register):
    """Add ``identity`` to ``admin``'s active company with ``role``."""

    async def _add(admin: str, identity: str, role: Role = Role.MEMBER):
        await register(identity)
        member = await call(add_colleague, admin, identity)
        if role != Role.MEMBER:
            member = await call(update_user_role, admin, identity, role)
        return member

    return _add


@pytest.fixture
def connect(call):
    """Bring two companies to an accepted connection via request + accept."""

    async def _connect(requester: str, requester_company_id, accepter: str, accepter_company_id):
        await call(request_connection, requester, accepter_company_id, "Hello")
        return await call(accept_connection, accepter, requester_company_id)

    return _connect

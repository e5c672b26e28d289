"""
Integration tests for the connection state machine.

Tests cover:
- Pair symmetry and uniqueness
- Request / accept / decline / cancel / disconnect transitions
- Ghosting: requests against a block succeed silently and change nothing
- First blocker wins; only the blocker can unblock
- Connection chat and its fan-out
"""

from __future__ import annotations

import uuid

import pytest
from sqlmodel import select

from app.core.exceptions import (
    Conflict,
    InsufficientRole,
    InvalidState,
    NotAMember,
    NotFound,
)
from app.models.connection import Connection, ConnectionChat
from app.models.notification import Notification
from app.services.connections import (
    accept_connection,
    block_company,
    cancel_request,
    decline_connection,
    disconnect_company,
    find_connection,
    list_connections,
    request_connection,
    send_connection_chat,
    unblock_company,
)
from app.services.members import leave_company
from signdir_shared.schemas.common import ConnectionStatus, NotificationType, Role


@pytest.fixture
async def two_companies(make_company):
    acme = await make_company("alice", "acme-signs")
    bolt = await make_company("bob", "bolt-install")
    return acme, bolt


async def _notes(query, recipient, type):
    return await query(
        select(Notification).where(
            Notification.recipient == recipient,
            Notification.type == type.value,
        )
    )


@pytest.mark.asyncio
class TestRequests:

    async def test_request_is_symmetric(self, call, two_companies):
        acme, bolt = two_companies
        created = await call(request_connection, "alice", bolt.id, "  Need an installer  ")

        forward = await call(find_connection, acme.id, bolt.id)
        backward = await call(find_connection, bolt.id, acme.id)
        assert forward.id == backward.id == created.id
        assert forward.company_a <= forward.company_b
        assert forward.status == ConnectionStatus.PENDING.value
        assert forward.initial_message == "Need an installer"

    async def test_one_row_per_pair(self, call, two_companies):
        acme, bolt = two_companies
        await call(request_connection, "alice", bolt.id, "")
        with pytest.raises(Conflict):
            await call(request_connection, "alice", bolt.id, "")
        with pytest.raises(Conflict):
            await call(request_connection, "bob", acme.id, "")

    async def test_request_validation(self, call, two_companies):
        acme, _ = two_companies
        with pytest.raises(Conflict):
            await call(request_connection, "alice", acme.id, "")
        with pytest.raises(NotFound):
            await call(request_connection, "alice", uuid.uuid4(), "")

    async def test_request_notifies_target_admins(self, call, two_companies, add_member, query):
        _, bolt = two_companies
        await add_member("bob", "bea", Role.ADMIN)
        await add_member("bob", "fred", Role.FIELD)

        await call(request_connection, "alice", bolt.id, "")

        for identity in ("bob", "bea"):
            assert len(await _notes(query, identity, NotificationType.CONNECTION_REQUEST)) == 1
        assert await _notes(query, "fred", NotificationType.CONNECTION_REQUEST) == []

    async def test_member_cannot_request(self, call, two_companies, add_member):
        _, bolt = two_companies
        await add_member("alice", "carol")
        with pytest.raises(InsufficientRole):
            await call(request_connection, "carol", bolt.id, "")


@pytest.mark.asyncio
class TestTransitions:

    async def test_accept(self, call, two_companies, query):
        acme, bolt = two_companies
        await call(request_connection, "alice", bolt.id, "")

        with pytest.raises(Conflict):
            await call(accept_connection, "alice", bolt.id)

        connection = await call(accept_connection, "bob", acme.id)
        assert connection.status == ConnectionStatus.ACCEPTED.value
        assert len(await _notes(query, "alice", NotificationType.CONNECTION_ACCEPTED)) == 1

        with pytest.raises(InvalidState):
            await call(accept_connection, "bob", acme.id)

    async def test_accept_without_row(self, call, two_companies):
        acme, _ = two_companies
        with pytest.raises(NotFound):
            await call(accept_connection, "bob", acme.id)

    async def test_decline_then_retry(self, call, two_companies, query):
        acme, bolt = two_companies
        await call(request_connection, "alice", bolt.id, "first try")

        with pytest.raises(Conflict):
            await call(decline_connection, "alice", bolt.id)
        await call(decline_connection, "bob", acme.id)

        assert await call(find_connection, acme.id, bolt.id) is None
        assert len(await _notes(query, "alice", NotificationType.CONNECTION_DECLINED)) == 1

        retry = await call(request_connection, "alice", bolt.id, "second try")
        assert retry.status == ConnectionStatus.PENDING.value

    async def test_cancel_is_requester_only(self, call, two_companies, query):
        acme, bolt = two_companies
        await call(request_connection, "alice", bolt.id, "")

        with pytest.raises(Conflict):
            await call(cancel_request, "bob", acme.id)
        await call(cancel_request, "alice", bolt.id)
        assert await query(select(Connection)) == []

    async def test_disconnect_removes_chat(self, call, two_companies, connect, query):
        acme, bolt = two_companies
        connection = await connect("alice", acme.id, "bob", bolt.id)
        await call(send_connection_chat, "alice", connection.id, "hello")

        await call(disconnect_company, "bob", acme.id)
        assert await query(select(Connection)) == []
        assert await query(select(ConnectionChat)) == []

    async def test_disconnect_requires_accepted(self, call, two_companies):
        _, bolt = two_companies
        await call(request_connection, "alice", bolt.id, "")
        with pytest.raises(InvalidState):
            await call(disconnect_company, "alice", bolt.id)

    async def test_requester_gone(self, call, two_companies, add_member):
        acme, bolt = two_companies
        await add_member("alice", "adam", Role.ADMIN)
        await call(request_connection, "adam", bolt.id, "")
        await call(leave_company, "adam")

        with pytest.raises(InvalidState):
            await call(accept_connection, "bob", acme.id)
        with pytest.raises(InvalidState):
            await call(cancel_request, "alice", bolt.id)

    async def test_orphaned_request_can_be_declined_by_either_side(
        self, call, two_companies, add_member, query
    ):
        acme, bolt = two_companies
        await add_member("alice", "adam", Role.ADMIN)
        await call(request_connection, "adam", bolt.id, "")
        await call(leave_company, "adam")

        await call(decline_connection, "alice", bolt.id)
        assert await query(select(Connection)) == []

        retry = await call(request_connection, "bob", acme.id, "fresh start")
        assert retry.status == ConnectionStatus.PENDING.value

    async def test_requester_in_both_companies(self, call, two_companies, add_member):
        acme, bolt = two_companies
        await add_member("alice", "carol", Role.ADMIN)
        await add_member("bob", "carol", Role.ADMIN)
        await call(request_connection, "carol", bolt.id, "")

        # Either side counts as the requesting side
        with pytest.raises(Conflict):
            await call(accept_connection, "bob", acme.id)
        await call(cancel_request, "bob", acme.id)


@pytest.mark.asyncio
class TestBlocking:

    async def test_block_without_row(self, call, two_companies):
        acme, bolt = two_companies
        connection = await call(block_company, "alice", bolt.id)
        assert connection.status == ConnectionStatus.BLOCKED.value
        assert connection.blocking_company_id == acme.id

    async def test_ghosted_request_is_idempotent(self, call, two_companies, query):
        acme, bolt = two_companies
        await call(block_company, "bob", acme.id)
        before = await query(select(Notification))

        for _ in range(2):
            assert await call(request_connection, "alice", bolt.id, "please") is None

        rows = await query(select(Connection))
        assert len(rows) == 1
        assert rows[0].status == ConnectionStatus.BLOCKED.value
        assert rows[0].blocking_company_id == bolt.id
        assert len(await query(select(Notification))) == len(before)

    async def test_first_blocker_wins(self, call, two_companies):
        acme, bolt = two_companies
        await call(request_connection, "alice", bolt.id, "")
        await call(block_company, "bob", acme.id)
        again = await call(block_company, "alice", bolt.id)
        assert again.blocking_company_id == bolt.id

        with pytest.raises(Conflict):
            await call(unblock_company, "alice", bolt.id)
        await call(unblock_company, "bob", acme.id)
        assert await call(find_connection, acme.id, bolt.id) is None

    async def test_blocks_never_notify(self, call, two_companies, connect, query):
        acme, bolt = two_companies
        await connect("alice", acme.id, "bob", bolt.id)
        before = len(await query(select(Notification)))
        await call(block_company, "alice", bolt.id)
        await call(unblock_company, "alice", bolt.id)
        assert len(await query(select(Notification))) == before

    async def test_unblock_requires_block(self, call, two_companies, connect):
        acme, bolt = two_companies
        await connect("alice", acme.id, "bob", bolt.id)
        with pytest.raises(InvalidState):
            await call(unblock_company, "alice", bolt.id)

    async def test_block_hidden_from_blocked_company(self, call, two_companies):
        acme, bolt = two_companies
        await call(block_company, "alice", bolt.id)
        assert len(await call(list_connections, "alice")) == 1
        assert await call(list_connections, "bob") == []


@pytest.mark.asyncio
class TestConnectionChat:

    async def test_chat_fans_out_to_other_company(
        self, call, two_companies, connect, add_member, query
    ):
        acme, bolt = two_companies
        await add_member("bob", "fred", Role.FIELD)
        await add_member("bob", "paul", Role.PENDING)
        connection = await connect("alice", acme.id, "bob", bolt.id)

        chat = await call(send_connection_chat, "alice", connection.id, " on site at 9 ")
        assert chat.text == "on site at 9"

        recipients = {
            n.recipient
            for n in await query(
                select(Notification).where(
                    Notification.type == NotificationType.CONNECTION_CHAT.value
                )
            )
        }
        assert recipients == {"bob", "fred"}

    async def test_chat_allowed_while_pending(self, call, two_companies):
        _, bolt = two_companies
        connection = await call(request_connection, "alice", bolt.id, "")
        await call(send_connection_chat, "bob", connection.id, "who are you?")

    async def test_chat_on_blocked_connection(self, call, two_companies):
        acme, bolt = two_companies
        connection = await call(block_company, "alice", bolt.id)
        with pytest.raises(InvalidState):
            await call(send_connection_chat, "bob", connection.id, "hi")

    async def test_outsider_cannot_chat(self, call, two_companies, connect, make_company):
        acme, bolt = two_companies
        connection = await connect("alice", acme.id, "bob", bolt.id)
        await make_company("zed", "zed-signs")
        with pytest.raises(NotAMember):
            await call(send_connection_chat, "zed", connection.id, "hi")

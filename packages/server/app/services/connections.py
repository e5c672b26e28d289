"""
Connection service: the pairwise company relationship state machine.

States per unordered company pair: no row, pending, accepted, blocked.

- request:    no row -> pending (blocked: silent no-op, the block is never revealed)
- accept:     pending -> accepted (non-requesting side)
- decline:    pending -> no row (non-requesting side)
- cancel:     pending -> no row (requesting side)
- disconnect: accepted -> no row (either side)
- block:      any -> blocked (first blocker is kept)
- unblock:    blocked -> no row (blocking company only)
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import Conflict, InvalidState, NotAMember, NotFound
from app.core.logging import short_identity
from app.models.company import Company
from app.models.connection import Connection, ConnectionChat
from app.services.cascade import delete_connection_cascade
from app.services.notifications import notify_company_role
from app.services.roles import get_membership, resolve
from signdir_shared.schemas.common import (
    ConnectionStatus,
    NotificationType,
    Role,
    normalize_pair,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def find_connection(
    a: uuid.UUID, b: uuid.UUID, session: AsyncSession
) -> Optional[Connection]:
    """Find the connection between two companies, in either argument order."""
    lo, hi = normalize_pair(a, b)
    result = await session.execute(
        select(Connection).where(Connection.company_a == lo, Connection.company_b == hi)
    )
    return result.scalar_one_or_none()


async def _get_connection_or_404(
    a: uuid.UUID, b: uuid.UUID, session: AsyncSession
) -> Connection:
    connection = await find_connection(a, b, session)
    if not connection:
        raise NotFound("No connection exists")
    return connection


async def _require_company(company_id: uuid.UUID, session: AsyncSession) -> Company:
    company = await session.get(Company, company_id)
    if not company:
        raise NotFound("Target company not found")
    return company


def _other_side(connection: Connection, company_id: uuid.UUID) -> uuid.UUID:
    return connection.company_b if connection.company_a == company_id else connection.company_a


async def requesting_sides(connection: Connection, session: AsyncSession) -> set[uuid.UUID]:
    """Companies of the pair the requester currently belongs to.

    Checked against both sides rather than the requester's active company,
    which may have moved since the request was made. Empty once the
    requester has left both companies.
    """
    sides = set()
    for company_id in (connection.company_a, connection.company_b):
        if await get_membership(connection.requested_by, company_id, session):
            sides.add(company_id)
    return sides


async def _get_pending(
    my_company_id: uuid.UUID, target_company_id: uuid.UUID, session: AsyncSession
) -> Connection:
    connection = await _get_connection_or_404(my_company_id, target_company_id, session)
    if connection.status != ConnectionStatus.PENDING.value:
        raise InvalidState("Connection is not pending")
    return connection


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def request_connection(
    caller: str,
    target_company_id: uuid.UUID,
    message: str,
    session: AsyncSession,
) -> Optional[Connection]:
    """Ask another company to connect.

    Returns the new pending row, or None when the pair is blocked (the call
    still succeeds so the requester cannot detect the block).
    """
    resolved = await resolve(caller, Role.ADMIN, session)
    my_company_id = resolved.company_id

    if my_company_id == target_company_id:
        raise Conflict("Cannot connect to your own company")
    await _require_company(target_company_id, session)

    existing = await find_connection(my_company_id, target_company_id, session)
    if existing:
        if existing.status == ConnectionStatus.BLOCKED.value:
            log.debug("connection.request_ghosted", company_id=str(my_company_id))
            return None
        raise Conflict("A connection already exists between these companies")

    lo, hi = normalize_pair(my_company_id, target_company_id)
    connection = Connection(
        company_a=lo,
        company_b=hi,
        status=ConnectionStatus.PENDING.value,
        requested_by=caller,
        initial_message=message.strip(),
    )
    session.add(connection)
    await session.flush()

    requester = await session.get(Company, my_company_id)
    await notify_company_role(
        target_company_id,
        Role.ADMIN,
        None,
        NotificationType.CONNECTION_REQUEST,
        "New connection request",
        f"{requester.name} wants to connect." if requester else "A company wants to connect.",
        session,
    )

    log.info(
        "connection.requested",
        connection_id=str(connection.id),
        from_company=str(my_company_id),
        to_company=str(target_company_id),
    )
    return connection


async def accept_connection(
    caller: str, target_company_id: uuid.UUID, session: AsyncSession
) -> Connection:
    resolved = await resolve(caller, Role.ADMIN, session)
    my_company_id = resolved.company_id

    connection = await _get_pending(my_company_id, target_company_id, session)
    sides = await requesting_sides(connection, session)
    if not sides:
        raise InvalidState("The requesting user no longer belongs to either company")
    if my_company_id in sides:
        raise Conflict("You cannot accept your own connection request")

    connection.status = ConnectionStatus.ACCEPTED.value
    session.add(connection)
    await session.flush()

    company = await session.get(Company, my_company_id)
    await notify_company_role(
        target_company_id,
        Role.ADMIN,
        None,
        NotificationType.CONNECTION_ACCEPTED,
        "Connection accepted",
        f"{company.name} accepted your connection request." if company else "",
        session,
    )

    log.info("connection.accepted", connection_id=str(connection.id), by_company=str(my_company_id))
    return connection


async def decline_connection(
    caller: str, target_company_id: uuid.UUID, session: AsyncSession
) -> None:
    """Decline a pending request.

    An orphaned request, whose requester has left both companies, may be
    declined from either side.
    """
    resolved = await resolve(caller, Role.ADMIN, session)
    my_company_id = resolved.company_id

    connection = await _get_pending(my_company_id, target_company_id, session)
    if my_company_id in await requesting_sides(connection, session):
        raise Conflict("You cannot decline your own connection request")

    await delete_connection_cascade(connection, session)

    company = await session.get(Company, my_company_id)
    await notify_company_role(
        target_company_id,
        Role.ADMIN,
        None,
        NotificationType.CONNECTION_DECLINED,
        "Connection declined",
        f"{company.name} declined your connection request." if company else "",
        session,
    )

    log.info("connection.declined", by_company=str(my_company_id), company_id=str(target_company_id))


async def cancel_request(
    caller: str, target_company_id: uuid.UUID, session: AsyncSession
) -> None:
    resolved = await resolve(caller, Role.ADMIN, session)
    my_company_id = resolved.company_id

    connection = await _get_pending(my_company_id, target_company_id, session)
    sides = await requesting_sides(connection, session)
    if not sides:
        raise InvalidState("The requesting user no longer belongs to either company")
    if my_company_id not in sides:
        raise Conflict("Only the requesting side can cancel a request")

    await delete_connection_cascade(connection, session)
    log.info("connection.cancelled", by_company=str(my_company_id), company_id=str(target_company_id))


async def disconnect_company(
    caller: str, target_company_id: uuid.UUID, session: AsyncSession
) -> None:
    resolved = await resolve(caller, Role.ADMIN, session)

    connection = await _get_connection_or_404(resolved.company_id, target_company_id, session)
    if connection.status != ConnectionStatus.ACCEPTED.value:
        raise InvalidState("Connection is not active")

    await delete_connection_cascade(connection, session)
    log.info(
        "connection.disconnected",
        by_company=str(resolved.company_id),
        company_id=str(target_company_id),
    )


async def block_company(
    caller: str, target_company_id: uuid.UUID, session: AsyncSession
) -> Connection:
    """Block a company from any state. Re-blocking keeps the original blocker."""
    resolved = await resolve(caller, Role.ADMIN, session)
    my_company_id = resolved.company_id

    if my_company_id == target_company_id:
        raise Conflict("Cannot block your own company")
    await _require_company(target_company_id, session)

    connection = await find_connection(my_company_id, target_company_id, session)
    if connection:
        if connection.status == ConnectionStatus.BLOCKED.value:
            return connection
        connection.status = ConnectionStatus.BLOCKED.value
        connection.blocking_company_id = my_company_id
    else:
        lo, hi = normalize_pair(my_company_id, target_company_id)
        connection = Connection(
            company_a=lo,
            company_b=hi,
            status=ConnectionStatus.BLOCKED.value,
            requested_by=caller,
            blocking_company_id=my_company_id,
        )
    session.add(connection)
    await session.flush()

    log.info(
        "connection.blocked",
        audit=True,
        actor=short_identity(caller),
        company_id=str(my_company_id),
        blocked_company=str(target_company_id),
    )
    return connection


async def unblock_company(
    caller: str, target_company_id: uuid.UUID, session: AsyncSession
) -> None:
    resolved = await resolve(caller, Role.ADMIN, session)
    my_company_id = resolved.company_id

    connection = await _get_connection_or_404(my_company_id, target_company_id, session)
    if connection.status != ConnectionStatus.BLOCKED.value:
        raise InvalidState("Connection is not blocked")
    if connection.blocking_company_id != my_company_id:
        raise Conflict("Only the company that blocked can unblock")

    await delete_connection_cascade(connection, session)

    log.info(
        "connection.unblocked",
        audit=True,
        actor=short_identity(caller),
        company_id=str(my_company_id),
        unblocked_company=str(target_company_id),
    )


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


async def send_connection_chat(
    caller: str, connection_id: uuid.UUID, text: str, session: AsyncSession
) -> ConnectionChat:
    """Post to a pending or accepted connection the caller's company is part of."""
    resolved = await resolve(caller, Role.FIELD, session)
    my_company_id = resolved.company_id

    connection = await session.get(Connection, connection_id)
    if not connection:
        raise NotFound("Connection not found")
    if my_company_id not in (connection.company_a, connection.company_b):
        raise NotAMember("Your company is not part of this connection")
    if connection.status == ConnectionStatus.BLOCKED.value:
        raise InvalidState("Cannot chat on a blocked connection")

    chat = ConnectionChat(connection_id=connection.id, sender=caller, text=text.strip())
    session.add(chat)
    await session.flush()

    await notify_company_role(
        _other_side(connection, my_company_id),
        Role.FIELD,
        caller,
        NotificationType.CONNECTION_CHAT,
        "New message",
        chat.text[:120],
        session,
    )
    return chat


async def list_connection_chat(
    caller: str, connection_id: uuid.UUID, session: AsyncSession
) -> list[ConnectionChat]:
    resolved = await resolve(caller, Role.FIELD, session)

    connection = await session.get(Connection, connection_id)
    if not connection or resolved.company_id not in (connection.company_a, connection.company_b):
        raise NotFound("Connection not found")

    result = await session.execute(
        select(ConnectionChat)
        .where(ConnectionChat.connection_id == connection_id)
        .order_by(ConnectionChat.created_at)
    )
    return list(result.scalars().all())


async def list_connections(
    caller: str, session: AsyncSession, *, status: Optional[ConnectionStatus] = None
) -> list[Connection]:
    """Connections of the caller's company.

    Blocked rows are only listed for the blocking company.
    """
    resolved = await resolve(caller, Role.FIELD, session)
    my_company_id = resolved.company_id

    stmt = select(Connection).where(
        or_(Connection.company_a == my_company_id, Connection.company_b == my_company_id)
    )
    if status:
        stmt = stmt.where(Connection.status == status.value)
    result = await session.execute(stmt.order_by(Connection.created_at))

    return [
        c for c in result.scalars().all()
        if c.status != ConnectionStatus.BLOCKED.value or c.blocking_company_id == my_company_id
    ]

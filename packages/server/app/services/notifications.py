"""
Notification fan-out and the recipient-side read/clear procedures.

Fan-out runs inside the triggering procedure's session, so notifications are
committed or discarded together with the transition that produced them.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import NotFound
from app.models.company_member import CompanyMember
from app.models.notification import Notification
from app.services.roles import get_account
from signdir_shared.schemas.common import NotificationType, Role, role_level

log = structlog.get_logger()


async def notify(
    recipient: str,
    company_id: uuid.UUID,
    type: NotificationType,
    title: str,
    body: str,
    session: AsyncSession,
) -> Notification:
    """Insert a single notification row."""
    notification = Notification(
        recipient=recipient,
        company_id=company_id,
        type=type.value,
        title=title,
        body=body,
    )
    session.add(notification)
    return notification


async def notify_company_role(
    company_id: uuid.UUID,
    min_role: Role,
    exclude: Optional[str],
    type: NotificationType,
    title: str,
    body: str,
    session: AsyncSession,
) -> int:
    """Notify every member of a company at or above ``min_role``.

    ``exclude`` (usually the actor) is skipped. Returns the number of rows
    created.
    """
    result = await session.execute(
        select(CompanyMember).where(CompanyMember.company_id == company_id)
    )
    threshold = role_level(min_role)
    recipients = [
        m.identity
        for m in result.scalars().all()
        if role_level(m.role) >= threshold and m.identity != exclude
    ]
    for identity in recipients:
        await notify(identity, company_id, type, title, body, session)
    await session.flush()

    log.debug(
        "notification.fanout",
        company_id=str(company_id),
        type=type.value,
        recipients=len(recipients),
    )
    return len(recipients)


async def mark_notification_read(
    caller: str, notification_id: uuid.UUID, session: AsyncSession
) -> Notification:
    """Mark one of the caller's notifications as read."""
    await get_account(caller, session)

    notification = await session.get(Notification, notification_id)
    # Other recipients' rows are indistinguishable from missing ones
    if not notification or notification.recipient != caller:
        raise NotFound("Notification not found")

    notification.read = True
    session.add(notification)
    await session.flush()
    return notification


async def mark_all_notifications_read(
    caller: str, company_id: uuid.UUID, session: AsyncSession
) -> int:
    """Mark every unread notification of the caller in a company context."""
    await get_account(caller, session)

    result = await session.execute(
        update(Notification)
        .where(
            Notification.recipient == caller,
            Notification.company_id == company_id,
            Notification.read == False,  # noqa: E712
        )
        .values(read=True)
        .execution_options(synchronize_session="fetch")
    )
    await session.flush()
    return result.rowcount or 0


async def clear_notifications(
    caller: str, company_id: uuid.UUID, session: AsyncSession
) -> int:
    """Delete the caller's read notifications in a company context."""
    await get_account(caller, session)

    result = await session.execute(
        delete(Notification)
        .where(
            Notification.recipient == caller,
            Notification.company_id == company_id,
            Notification.read == True,  # noqa: E712
        )
        .execution_options(synchronize_session="fetch")
    )
    await session.flush()
    log.info("notifications.cleared", recipient=caller, company_id=str(company_id), count=result.rowcount)
    return result.rowcount or 0


async def list_notifications(
    caller: str, session: AsyncSession, *, company_id: Optional[uuid.UUID] = None
) -> list[Notification]:
    await get_account(caller, session)

    stmt = select(Notification).where(Notification.recipient == caller)
    if company_id:
        stmt = stmt.where(Notification.company_id == company_id)
    result = await session.execute(stmt.order_by(Notification.created_at.desc()))
    return list(result.scalars().all())

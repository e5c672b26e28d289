"""
Cascading deletion engine.

The store enforces no foreign keys, so every path that removes a row which
others reference goes through one of the named cascades below. Each helper
assumes it runs inside the caller's transaction and only flushes.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import InsufficientRole, NotFound
from app.core.logging import short_identity
from app.models.company import Capability, Company
from app.models.company_member import CompanyMember
from app.models.connection import Connection, ConnectionChat
from app.models.invite_code import InviteCode, UsedInviteCode
from app.models.notification import Notification
from app.models.project import Project, ProjectChat, ProjectMember
from app.models.user_account import UserAccount
from app.services.roles import list_memberships, resolve
from signdir_shared.schemas.common import ProjectMemberStatus, Role

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Memberships
# ---------------------------------------------------------------------------

async def reassign_active_company(
    identity: str, removed_company_id: uuid.UUID, session: AsyncSession
) -> None:
    """Move an account's cursor off ``removed_company_id``.

    The cursor moves to the oldest remaining membership, or is cleared.
    Accounts pointing elsewhere are left alone.
    """
    account = await session.get(UserAccount, identity)
    if not account or account.active_company_id != removed_company_id:
        return

    remaining = [
        m for m in await list_memberships(identity, session)
        if m.company_id != removed_company_id
    ]
    account.active_company_id = remaining[0].company_id if remaining else None
    session.add(account)
    await session.flush()


async def remove_membership(member: CompanyMember, session: AsyncSession) -> None:
    """Delete a membership row and repair the member's cursor."""
    identity, company_id = member.identity, member.company_id
    await session.delete(member)
    await session.flush()
    await reassign_active_company(identity, company_id, session)


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

async def delete_connection_chat(connection_id: uuid.UUID, session: AsyncSession) -> None:
    await session.execute(
        delete(ConnectionChat).where(ConnectionChat.connection_id == connection_id)
    )


async def delete_connection_cascade(connection: Connection, session: AsyncSession) -> None:
    """Delete a connection together with its chat."""
    await delete_connection_chat(connection.id, session)
    await session.delete(connection)
    await session.flush()


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

async def delete_project_cascade(project_id: uuid.UUID, session: AsyncSession) -> None:
    """Delete a project's chat, its member rows, then the project itself."""
    await session.execute(delete(ProjectChat).where(ProjectChat.project_id == project_id))
    await session.execute(delete(ProjectMember).where(ProjectMember.project_id == project_id))
    await session.execute(delete(Project).where(Project.id == project_id))
    await session.flush()


async def count_accepted_members(project_id: uuid.UUID, session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(ProjectMember)
        .where(
            ProjectMember.project_id == project_id,
            ProjectMember.status == ProjectMemberStatus.ACCEPTED.value,
        )
    )
    return result.scalar_one()


async def dissolve_if_abandoned(project_id: uuid.UUID, session: AsyncSession) -> bool:
    """Delete the project if no Accepted member remains. Returns True if deleted."""
    if await count_accepted_members(project_id, session) > 0:
        return False
    await delete_project_cascade(project_id, session)
    log.info("project.dissolved", project_id=str(project_id))
    return True


# ---------------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------------

async def _delete_invites(company_id: uuid.UUID, session: AsyncSession) -> None:
    await session.execute(delete(InviteCode).where(InviteCode.company_id == company_id))
    await session.execute(
        delete(UsedInviteCode).where(UsedInviteCode.company_id == company_id)
    )


async def _unlink_members(company_id: uuid.UUID, session: AsyncSession) -> int:
    result = await session.execute(
        select(CompanyMember).where(CompanyMember.company_id == company_id)
    )
    members = list(result.scalars().all())
    for member in members:
        await remove_membership(member, session)
    return len(members)


async def _delete_connections(company_id: uuid.UUID, session: AsyncSession) -> int:
    result = await session.execute(
        select(Connection).where(
            or_(Connection.company_a == company_id, Connection.company_b == company_id)
        )
    )
    connections = list(result.scalars().all())
    for connection in connections:
        await delete_connection_cascade(connection, session)
    return len(connections)


async def _delete_owned_projects(company_id: uuid.UUID, session: AsyncSession) -> int:
    result = await session.execute(
        select(Project.id).where(Project.owner_company_id == company_id)
    )
    project_ids = list(result.scalars().all())
    for project_id in project_ids:
        await delete_project_cascade(project_id, session)
    return len(project_ids)


async def _leave_joined_projects(company_id: uuid.UUID, session: AsyncSession) -> list[uuid.UUID]:
    """Remove the company from projects it merely belonged to.

    Only the affected projects are checked for dissolution afterwards.
    """
    result = await session.execute(
        select(ProjectMember).where(ProjectMember.company_id == company_id)
    )
    rows = list(result.scalars().all())
    affected = {row.project_id for row in rows}
    for row in rows:
        await session.delete(row)
    await session.flush()

    dissolved = []
    for project_id in affected:
        if await dissolve_if_abandoned(project_id, session):
            dissolved.append(project_id)
    return dissolved


async def delete_company_cascade(company: Company, session: AsyncSession) -> dict:
    """Remove a company and everything that references it."""
    company_id = company.id

    await _delete_invites(company_id, session)
    members = await _unlink_members(company_id, session)
    await session.execute(delete(Capability).where(Capability.company_id == company_id))
    connections = await _delete_connections(company_id, session)
    await session.execute(delete(Notification).where(Notification.company_id == company_id))
    owned = await _delete_owned_projects(company_id, session)
    dissolved = await _leave_joined_projects(company_id, session)

    await session.delete(company)
    await session.flush()

    return {
        "members_unlinked": members,
        "connections_deleted": connections,
        "projects_deleted": owned,
        "projects_dissolved": len(dissolved),
    }


async def delete_company(caller: str, session: AsyncSession) -> None:
    """Permanently delete the caller's active company (recorded owner only)."""
    resolved = await resolve(caller, Role.OWNER, session)

    company = await session.get(Company, resolved.company_id)
    if not company:
        raise NotFound("Company not found")
    if company.owner_identity != caller:
        raise InsufficientRole("Only the owner can do this")

    stats = await delete_company_cascade(company, session)

    log.info(
        "company.deleted",
        audit=True,
        actor=short_identity(caller),
        company_id=str(company.id),
        name=company.name,
        **stats,
    )

"""
Project service: shared project rooms between connected companies.

Each company's participation is a ProjectMember row:
invited -> accepted -> left | kicked. Declined invites are deleted, and
terminal rows are cleared before a company is re-invited. A project with no
accepted company left is dissolved.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import (
    Conflict,
    InsufficientRole,
    InvalidState,
    NotAMember,
    NotFound,
)
from app.models.base import utcnow
from app.models.company import Company
from app.models.project import Project, ProjectChat, ProjectMember
from app.services.cascade import delete_project_cascade, dissolve_if_abandoned
from app.services.connections import find_connection
from app.services.notifications import notify_company_role
from app.services.roles import resolve
from signdir_shared.schemas.common import (
    ACTIVE_PROJECT_STATUSES,
    ConnectionStatus,
    NotificationType,
    ProjectMemberStatus,
    Role,
)
from signdir_shared.schemas.projects import validate_transition

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _get_project_or_404(project_id: uuid.UUID, session: AsyncSession) -> Project:
    project = await session.get(Project, project_id)
    if not project:
        raise NotFound("Project not found")
    return project


async def get_project_member(
    project_id: uuid.UUID, company_id: uuid.UUID, session: AsyncSession
) -> ProjectMember | None:
    result = await session.execute(
        select(ProjectMember).where(
            ProjectMember.project_id == project_id,
            ProjectMember.company_id == company_id,
        )
    )
    return result.scalar_one_or_none()


async def list_project_members(
    project_id: uuid.UUID, session: AsyncSession
) -> list[ProjectMember]:
    result = await session.execute(
        select(ProjectMember)
        .where(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.created_at)
    )
    return list(result.scalars().all())


def _transition(member: ProjectMember, target: ProjectMemberStatus) -> None:
    is_valid, error_msg = validate_transition(ProjectMemberStatus(member.status), target)
    if not is_valid:
        raise InvalidState(error_msg)
    member.status = target.value


def _require_owner(project: Project, company_id: uuid.UUID) -> None:
    if project.owner_company_id != company_id:
        raise InsufficientRole("Only the owning company can do this")


async def _company_name(company_id: uuid.UUID, session: AsyncSession) -> str:
    company = await session.get(Company, company_id)
    return company.name if company else "A company"


async def _require_accepted(
    project_id: uuid.UUID, company_id: uuid.UUID, session: AsyncSession
) -> ProjectMember:
    member = await get_project_member(project_id, company_id, session)
    if not member or member.status != ProjectMemberStatus.ACCEPTED.value:
        raise NotAMember("Your company is not an active member of this project")
    return member


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def create_project(
    caller: str, name: str, description: str, session: AsyncSession
) -> Project:
    """Create a project owned by the caller's active company."""
    resolved = await resolve(caller, Role.ADMIN, session)

    project = Project(
        owner_company_id=resolved.company_id,
        name=name.strip(),
        description=description.strip(),
        created_by=caller,
    )
    session.add(project)
    await session.flush()

    session.add(
        ProjectMember(
            project_id=project.id,
            company_id=resolved.company_id,
            status=ProjectMemberStatus.ACCEPTED.value,
            invited_by=caller,
            joined_at=utcnow(),
        )
    )
    await session.flush()

    log.info("project.created", project_id=str(project.id), company_id=str(resolved.company_id))
    return project


async def invite_to_project(
    caller: str,
    project_id: uuid.UUID,
    target_company_id: uuid.UUID,
    session: AsyncSession,
) -> ProjectMember:
    """Invite a connected company into a project the caller's company owns."""
    resolved = await resolve(caller, Role.ADMIN, session)
    project = await _get_project_or_404(project_id, session)
    _require_owner(project, resolved.company_id)

    if target_company_id == resolved.company_id:
        raise Conflict("Your company is already part of this project")
    if not await session.get(Company, target_company_id):
        raise NotFound("Target company not found")

    connection = await find_connection(resolved.company_id, target_company_id, session)
    if not connection or connection.status != ConnectionStatus.ACCEPTED.value:
        raise InvalidState("You can only invite companies you are connected with")

    existing = await get_project_member(project_id, target_company_id, session)
    if existing:
        if ProjectMemberStatus(existing.status) in ACTIVE_PROJECT_STATUSES:
            raise Conflict("Company is already invited to or part of this project")
        # Left or kicked: clear the old row so the company can be re-invited
        await session.delete(existing)
        await session.flush()

    member = ProjectMember(
        project_id=project_id,
        company_id=target_company_id,
        status=ProjectMemberStatus.INVITED.value,
        invited_by=caller,
    )
    session.add(member)
    await session.flush()

    await notify_company_role(
        target_company_id,
        Role.ADMIN,
        None,
        NotificationType.PROJECT_INVITE,
        "Project invitation",
        f"{await _company_name(resolved.company_id, session)} invited you to {project.name}.",
        session,
    )

    log.info(
        "project.invited",
        project_id=str(project_id),
        company_id=str(target_company_id),
        actor=caller,
    )
    return member


async def _get_invitation(
    project_id: uuid.UUID, company_id: uuid.UUID, session: AsyncSession
) -> ProjectMember:
    member = await get_project_member(project_id, company_id, session)
    if not member or member.status != ProjectMemberStatus.INVITED.value:
        raise NotFound("No pending invitation for this project")
    return member


async def accept_project_invite(
    caller: str, project_id: uuid.UUID, session: AsyncSession
) -> ProjectMember:
    resolved = await resolve(caller, Role.ADMIN, session)
    project = await _get_project_or_404(project_id, session)
    member = await _get_invitation(project_id, resolved.company_id, session)

    _transition(member, ProjectMemberStatus.ACCEPTED)
    member.joined_at = utcnow()
    session.add(member)
    await session.flush()

    await notify_company_role(
        project.owner_company_id,
        Role.ADMIN,
        None,
        NotificationType.PROJECT_ACCEPTED,
        "Project invitation accepted",
        f"{await _company_name(resolved.company_id, session)} joined {project.name}.",
        session,
    )

    log.info("project.accepted", project_id=str(project_id), company_id=str(resolved.company_id))
    return member


async def decline_project_invite(
    caller: str, project_id: uuid.UUID, session: AsyncSession
) -> None:
    resolved = await resolve(caller, Role.ADMIN, session)
    project = await _get_project_or_404(project_id, session)
    member = await _get_invitation(project_id, resolved.company_id, session)

    await session.delete(member)
    await session.flush()

    await notify_company_role(
        project.owner_company_id,
        Role.ADMIN,
        None,
        NotificationType.PROJECT_DECLINED,
        "Project invitation declined",
        f"{await _company_name(resolved.company_id, session)} declined {project.name}.",
        session,
    )

    log.info("project.declined", project_id=str(project_id), company_id=str(resolved.company_id))


async def leave_project(caller: str, project_id: uuid.UUID, session: AsyncSession) -> bool:
    """Leave a project. Returns True if the project dissolved as a result."""
    resolved = await resolve(caller, Role.ADMIN, session)
    project = await _get_project_or_404(project_id, session)

    if project.owner_company_id == resolved.company_id:
        raise InvalidState("The owning company cannot leave; delete the project instead")

    member = await _require_accepted(project_id, resolved.company_id, session)
    _transition(member, ProjectMemberStatus.LEFT)
    session.add(member)
    await session.flush()

    await notify_company_role(
        project.owner_company_id,
        Role.ADMIN,
        None,
        NotificationType.PROJECT_LEFT,
        "Company left project",
        f"{await _company_name(resolved.company_id, session)} left {project.name}.",
        session,
    )

    log.info("project.left", project_id=str(project_id), company_id=str(resolved.company_id))
    return await dissolve_if_abandoned(project_id, session)


async def kick_from_project(
    caller: str,
    project_id: uuid.UUID,
    target_company_id: uuid.UUID,
    session: AsyncSession,
) -> bool:
    """Remove an accepted company. Returns True if the project dissolved."""
    resolved = await resolve(caller, Role.ADMIN, session)
    project = await _get_project_or_404(project_id, session)
    _require_owner(project, resolved.company_id)

    if target_company_id == resolved.company_id:
        raise Conflict("Cannot kick your own company")

    member = await get_project_member(project_id, target_company_id, session)
    if not member:
        raise NotFound("Company is not part of this project")
    _transition(member, ProjectMemberStatus.KICKED)
    session.add(member)
    await session.flush()

    await notify_company_role(
        target_company_id,
        Role.ADMIN,
        None,
        NotificationType.PROJECT_KICKED,
        "Removed from project",
        f"Your company was removed from {project.name}.",
        session,
    )

    log.info(
        "project.kicked",
        project_id=str(project_id),
        company_id=str(target_company_id),
        actor=caller,
    )
    return await dissolve_if_abandoned(project_id, session)


async def delete_project(caller: str, project_id: uuid.UUID, session: AsyncSession) -> None:
    resolved = await resolve(caller, Role.ADMIN, session)
    project = await _get_project_or_404(project_id, session)
    _require_owner(project, resolved.company_id)

    name = project.name
    for member in await list_project_members(project_id, session):
        if member.company_id == resolved.company_id:
            continue
        if member.status != ProjectMemberStatus.ACCEPTED.value:
            continue
        await notify_company_role(
            member.company_id,
            Role.ADMIN,
            None,
            NotificationType.PROJECT_DELETED,
            "Project deleted",
            f"{name} was deleted by its owner.",
            session,
        )

    await delete_project_cascade(project_id, session)
    log.info("project.deleted", project_id=str(project_id), actor=caller)


# ---------------------------------------------------------------------------
# Reads and chat
# ---------------------------------------------------------------------------


async def list_projects(caller: str, session: AsyncSession) -> list[Project]:
    """Projects the caller's company is invited to or participating in."""
    resolved = await resolve(caller, Role.FIELD, session)
    result = await session.execute(
        select(Project)
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .where(
            ProjectMember.company_id == resolved.company_id,
            ProjectMember.status.in_([s.value for s in ACTIVE_PROJECT_STATUSES]),
        )
        .order_by(Project.created_at)
    )
    return list(result.scalars().all())


async def get_project_roster(
    caller: str, project_id: uuid.UUID, session: AsyncSession
) -> list[ProjectMember]:
    resolved = await resolve(caller, Role.FIELD, session)
    await _get_project_or_404(project_id, session)
    await _require_accepted(project_id, resolved.company_id, session)
    return await list_project_members(project_id, session)


async def send_project_chat(
    caller: str, project_id: uuid.UUID, text: str, session: AsyncSession
) -> ProjectChat:
    """Post to a project room and notify every accepted company's Field+ members."""
    resolved = await resolve(caller, Role.FIELD, session)
    project = await _get_project_or_404(project_id, session)
    await _require_accepted(project_id, resolved.company_id, session)

    chat = ProjectChat(project_id=project_id, sender=caller, text=text.strip())
    session.add(chat)
    await session.flush()

    for member in await list_project_members(project_id, session):
        if member.status != ProjectMemberStatus.ACCEPTED.value:
            continue
        await notify_company_role(
            member.company_id,
            Role.FIELD,
            caller,
            NotificationType.PROJECT_CHAT,
            f"New message in {project.name}",
            chat.text[:120],
            session,
        )
    return chat


async def list_project_chat(
    caller: str, project_id: uuid.UUID, session: AsyncSession
) -> list[ProjectChat]:
    resolved = await resolve(caller, Role.FIELD, session)
    await _get_project_or_404(project_id, session)
    await _require_accepted(project_id, resolved.company_id, session)

    result = await session.execute(
        select(ProjectChat)
        .where(ProjectChat.project_id == project_id)
        .order_by(ProjectChat.created_at)
    )
    return list(result.scalars().all())

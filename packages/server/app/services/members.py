"""
Team management: add, remove, leave, role changes and ownership transfer.

Role changes follow one rule: the actor must outrank both the target's
current role and the role being assigned. Owner is only ever handed over via
``transfer_ownership``.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    Conflict,
    InsufficientRole,
    InvalidState,
    NotFound,
)
from app.core.logging import short_identity
from app.models.company import Company
from app.models.company_member import CompanyMember
from app.models.user_account import UserAccount
from app.services.cascade import remove_membership
from app.services.notifications import notify, notify_company_role
from app.services.roles import get_membership, list_company_members, resolve
from signdir_shared.schemas.common import NotificationType, Role, role_level

log = structlog.get_logger()


async def _get_member_or_404(
    identity: str, company_id: uuid.UUID, session: AsyncSession
) -> CompanyMember:
    member = await get_membership(identity, company_id, session)
    if not member:
        raise NotFound("User is not a member of this company")
    return member


async def add_colleague(
    caller: str, colleague_identity: str, session: AsyncSession
) -> CompanyMember:
    """Add a registered identity to the caller's company as a Member."""
    resolved = await resolve(caller, Role.ADMIN, session)

    colleague = await session.get(UserAccount, colleague_identity)
    if not colleague:
        raise NotFound("Colleague account not found")
    if await get_membership(colleague_identity, resolved.company_id, session):
        raise Conflict("User is already a member of this company")

    membership = CompanyMember(
        identity=colleague_identity,
        company_id=resolved.company_id,
        role=Role.MEMBER.value,
    )
    session.add(membership)
    if colleague.active_company_id is None:
        colleague.active_company_id = resolved.company_id
        session.add(colleague)
    await session.flush()

    log.info(
        "company.member_added",
        company_id=str(resolved.company_id),
        identity=colleague_identity,
        actor=caller,
    )
    return membership


async def remove_colleague(
    caller: str, colleague_identity: str, session: AsyncSession
) -> None:
    """Remove a lower-ranked member from the caller's company."""
    resolved = await resolve(caller, Role.ADMIN, session)

    if caller == colleague_identity:
        raise Conflict("Cannot remove yourself")

    member = await _get_member_or_404(colleague_identity, resolved.company_id, session)
    if role_level(member.role) >= resolved.level:
        raise InsufficientRole("You can only remove members with a lower role than yours")

    await remove_membership(member, session)

    log.info(
        "company.member_removed",
        audit=True,
        actor=short_identity(caller),
        company_id=str(resolved.company_id),
        identity=short_identity(colleague_identity),
    )


async def leave_company(caller: str, session: AsyncSession) -> None:
    """Leave the active company. The Owner must transfer ownership first."""
    resolved = await resolve(caller, Role.PENDING, session)

    if resolved.role == Role.OWNER:
        raise InvalidState("Transfer ownership before leaving the company")

    await remove_membership(resolved.membership, session)
    log.info("company.member_left", company_id=str(resolved.company_id), identity=caller)


async def update_user_role(
    caller: str, target_identity: str, new_role: Role, session: AsyncSession
) -> CompanyMember:
    """Change a member's role; promotes Pending members out of quarantine."""
    resolved = await resolve(caller, Role.ADMIN, session)

    if caller == target_identity:
        raise Conflict("Cannot change your own role")
    if new_role == Role.OWNER:
        raise Conflict("Use transfer_ownership to assign the Owner role")

    target = await _get_member_or_404(target_identity, resolved.company_id, session)
    if target.role == Role.OWNER.value:
        raise Conflict("Cannot change the role of the Owner")
    if role_level(target.role) >= resolved.level or role_level(new_role) >= resolved.level:
        raise InsufficientRole("You can only assign roles below your own")

    previous = target.role
    target.role = new_role.value
    session.add(target)
    await session.flush()

    await notify(
        target_identity,
        resolved.company_id,
        NotificationType.ROLE_CHANGED,
        "Your role changed",
        f"Your role is now {new_role.value}.",
        session,
    )

    log.info(
        "company.role_changed",
        audit=True,
        actor=short_identity(caller),
        company_id=str(resolved.company_id),
        identity=short_identity(target_identity),
        previous=previous,
        role=new_role.value,
    )
    return target


async def transfer_ownership(
    caller: str, new_owner_identity: str, session: AsyncSession
) -> Company:
    """Hand the company to another member.

    The owner reference, the old owner's demotion and the new owner's
    promotion are applied in the same transaction.
    """
    resolved = await resolve(caller, Role.OWNER, session)

    if caller == new_owner_identity:
        raise Conflict("You are already the owner")

    target = await _get_member_or_404(new_owner_identity, resolved.company_id, session)

    company = await session.get(Company, resolved.company_id)
    if not company:
        raise NotFound("Company not found")
    if company.owner_identity != caller:
        raise InsufficientRole("Only the owner can do this")

    company.owner_identity = new_owner_identity
    resolved.membership.role = Role.ADMIN.value
    target.role = Role.OWNER.value
    session.add_all([company, resolved.membership, target])
    await session.flush()

    await notify_company_role(
        company.id,
        Role.ADMIN,
        caller,
        NotificationType.OWNERSHIP_TRANSFERRED,
        "Ownership transferred",
        f"{company.name} has a new owner.",
        session,
    )

    log.info(
        "company.ownership_transferred",
        audit=True,
        actor=short_identity(caller),
        company_id=str(company.id),
        new_owner=short_identity(new_owner_identity),
    )
    return company


async def list_members(caller: str, session: AsyncSession) -> list[dict]:
    """Members of the caller's active company with their display names, oldest first."""
    resolved = await resolve(caller, Role.FIELD, session)

    items = []
    for member in await list_company_members(resolved.company_id, session):
        account = await session.get(UserAccount, member.identity)
        items.append(
            {
                "identity": member.identity,
                "display_name": account.display_name if account else None,
                "role": member.role,
                "joined_at": member.joined_at,
            }
        )
    return items

"""
Company service: company creation, public profile, capabilities and the
invite-code lifecycle.
"""

from __future__ import annotations

import secrets

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.exceptions import Conflict, InvalidState, NotFound
from app.models.company import Capability, Company
from app.models.company_member import CompanyMember
from app.models.invite_code import InviteCode, UsedInviteCode
from app.services.notifications import notify_company_role
from app.services.roles import get_account, get_membership, resolve
from signdir_shared.schemas.common import NotificationType, Role, normalize_slug

log = structlog.get_logger()

# No 0/O/1/I so codes survive being read aloud
INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_GROUPS = 4
INVITE_CODE_GROUP_SIZE = 4


def generate_invite_code_value() -> str:
    """Random code formatted as XXXX-XXXX-XXXX-XXXX."""
    groups = [
        "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_GROUP_SIZE))
        for _ in range(INVITE_CODE_GROUPS)
    ]
    return "-".join(groups)


def normalize_invite_code(code: str) -> str:
    return code.strip().upper()


async def _slug_taken(slug: str, session: AsyncSession) -> bool:
    result = await session.execute(select(Company).where(Company.slug == slug))
    return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Company lifecycle
# ---------------------------------------------------------------------------

async def create_company(
    caller: str,
    name: str,
    slug: str,
    location: str,
    session: AsyncSession,
) -> Company:
    """Create a company and make the caller its Owner.

    The new company becomes the caller's active company. Existing
    memberships elsewhere are untouched.
    """
    account = await get_account(caller, session)

    slug = normalize_slug(slug)
    if await _slug_taken(slug, session):
        raise Conflict("Slug is already taken")

    company = Company(
        owner_identity=caller,
        name=name.strip(),
        slug=slug,
        location=location.strip(),
    )
    session.add(company)
    await session.flush()

    session.add(Capability(company_id=company.id))
    session.add(
        CompanyMember(identity=caller, company_id=company.id, role=Role.OWNER.value)
    )
    account.active_company_id = company.id
    session.add(account)
    await session.flush()

    log.info("company.created", company_id=str(company.id), slug=slug, owner=caller)
    return company


async def update_company_profile(
    caller: str,
    name: str,
    slug: str,
    location: str,
    bio: str,
    is_public: bool,
    session: AsyncSession,
) -> Company:
    resolved = await resolve(caller, Role.ADMIN, session)

    company = await session.get(Company, resolved.company_id)
    if not company:
        raise NotFound("Company not found")

    slug = normalize_slug(slug)
    if slug != company.slug and await _slug_taken(slug, session):
        raise Conflict("Slug is already taken")

    company.name = name.strip()
    company.slug = slug
    company.location = location.strip()
    company.bio = bio.strip()
    company.is_public = is_public
    session.add(company)
    await session.flush()

    log.info("company.updated", company_id=str(company.id), slug=slug)
    return company


async def update_capabilities(
    caller: str,
    can_install: bool,
    has_cnc: bool,
    has_large_format: bool,
    has_bucket_truck: bool,
    session: AsyncSession,
) -> Capability:
    resolved = await resolve(caller, Role.ADMIN, session)

    capability = await session.get(Capability, resolved.company_id)
    if not capability:
        raise NotFound("Capabilities not found")

    capability.can_install = can_install
    capability.has_cnc = has_cnc
    capability.has_large_format = has_large_format
    capability.has_bucket_truck = has_bucket_truck
    session.add(capability)
    await session.flush()
    return capability


# ---------------------------------------------------------------------------
# Invite codes
# ---------------------------------------------------------------------------

async def generate_invite_code(
    caller: str, max_uses: int, session: AsyncSession
) -> InviteCode:
    """Create a consumable invite code for the caller's active company."""
    resolved = await resolve(caller, Role.ADMIN, session)

    limit = get_settings().invite_code_max_uses
    if max_uses > limit:
        raise Conflict(f"An invite code allows at most {limit} uses")

    code = generate_invite_code_value()
    while await session.get(InviteCode, code):
        code = generate_invite_code_value()

    invite = InviteCode(
        code=code,
        company_id=resolved.company_id,
        created_by=caller,
        uses_remaining=max_uses if max_uses > 0 else 1,
    )
    session.add(invite)
    await session.flush()

    log.info(
        "invite_code.created",
        company_id=str(resolved.company_id),
        uses=invite.uses_remaining,
    )
    return invite


async def delete_invite_code(caller: str, code: str, session: AsyncSession) -> None:
    resolved = await resolve(caller, Role.ADMIN, session)

    invite = await session.get(InviteCode, normalize_invite_code(code))
    # Codes of other companies are reported as missing
    if not invite or invite.company_id != resolved.company_id:
        raise NotFound("Invite code not found")

    await session.delete(invite)
    await session.flush()
    log.info("invite_code.deleted", company_id=str(resolved.company_id))


async def join_company(caller: str, code: str, session: AsyncSession) -> CompanyMember:
    """Consume one use of an invite code and join its company as Pending.

    The code row is re-read under lock in this transaction, so two callers
    racing for the last use cannot both succeed.
    """
    account = await get_account(caller, session)
    code = normalize_invite_code(code)

    result = await session.execute(
        select(InviteCode).where(InviteCode.code == code).with_for_update()
    )
    invite = result.scalar_one_or_none()
    if not invite:
        raise NotFound("Invalid invite code")
    if invite.uses_remaining <= 0:
        raise InvalidState("Invite code has been fully used")

    company_id = invite.company_id
    if not await session.get(Company, company_id):
        raise NotFound("Invalid invite code")
    if await get_membership(caller, company_id, session):
        raise Conflict("You already belong to this company")

    used = await session.execute(
        select(UsedInviteCode).where(
            UsedInviteCode.identity == caller,
            UsedInviteCode.code == code,
        )
    )
    if used.scalar_one_or_none():
        raise Conflict("You have already used this invite code")

    membership = CompanyMember(identity=caller, company_id=company_id, role=Role.PENDING.value)
    session.add(membership)
    session.add(UsedInviteCode(identity=caller, code=code, company_id=company_id))
    account.active_company_id = company_id
    session.add(account)

    if invite.uses_remaining <= 1:
        await session.delete(invite)
    else:
        invite.uses_remaining -= 1
        session.add(invite)
    await session.flush()

    await notify_company_role(
        company_id,
        Role.ADMIN,
        caller,
        NotificationType.MEMBER_JOINED,
        "New member joined",
        f"{account.display_name} joined with an invite code and is awaiting approval.",
        session,
    )

    log.info("company.member_joined", company_id=str(company_id), identity=caller)
    return membership


async def get_active_company(caller: str, session: AsyncSession) -> Company:
    """The caller's active company; visible to Pending members too."""
    resolved = await resolve(caller, Role.PENDING, session)
    return await session.get(Company, resolved.company_id)


async def get_capabilities(caller: str, session: AsyncSession) -> Capability:
    resolved = await resolve(caller, Role.FIELD, session)
    capability = await session.get(Capability, resolved.company_id)
    if not capability:
        raise NotFound("Capabilities not found")
    return capability


async def list_invite_codes(caller: str, session: AsyncSession) -> list[InviteCode]:
    resolved = await resolve(caller, Role.ADMIN, session)
    result = await session.execute(
        select(InviteCode)
        .where(InviteCode.company_id == resolved.company_id)
        .order_by(InviteCode.created_at)
    )
    return list(result.scalars().all())

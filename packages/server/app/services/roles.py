"""
Role authority: resolves a caller identity to a membership in a company and
enforces minimum-role gates.

Resolution order is fixed: account, company context, membership, role.
Every failure is raised before the calling procedure touches domain rows.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import (
    InsufficientRole,
    NoActiveCompany,
    NotAMember,
    Unauthenticated,
)
from app.models.company import Company
from app.models.company_member import CompanyMember
from app.models.user_account import UserAccount
from signdir_shared.schemas.common import Role, role_level

_ROLE_DENIED_MESSAGES = {
    Role.OWNER: "Only the owner can do this",
    Role.ADMIN: "Only admins and owners can do this",
}


@dataclass
class ResolvedCaller:
    """An authenticated caller acting within one company."""

    account: UserAccount
    membership: CompanyMember
    company_id: uuid.UUID

    @property
    def identity(self) -> str:
        return self.account.identity

    @property
    def role(self) -> Role:
        return Role(self.membership.role)

    @property
    def level(self) -> int:
        return role_level(self.membership.role)


async def get_account(identity: str, session: AsyncSession) -> UserAccount:
    """Load the caller's account; raises Unauthenticated if absent."""
    account = await session.get(UserAccount, identity)
    if not account:
        raise Unauthenticated("Account not found")
    return account


async def get_membership(
    identity: str, company_id: uuid.UUID, session: AsyncSession
) -> Optional[CompanyMember]:
    result = await session.execute(
        select(CompanyMember).where(
            CompanyMember.identity == identity,
            CompanyMember.company_id == company_id,
        )
    )
    return result.scalar_one_or_none()


async def list_memberships(identity: str, session: AsyncSession) -> list[CompanyMember]:
    """All memberships of an identity, oldest first."""
    result = await session.execute(
        select(CompanyMember)
        .where(CompanyMember.identity == identity)
        .order_by(CompanyMember.joined_at)
    )
    return list(result.scalars().all())


async def list_company_members(
    company_id: uuid.UUID, session: AsyncSession
) -> list[CompanyMember]:
    result = await session.execute(
        select(CompanyMember)
        .where(CompanyMember.company_id == company_id)
        .order_by(CompanyMember.joined_at)
    )
    return list(result.scalars().all())


def check_role(role: Role | str, min_role: Role) -> None:
    """Raise InsufficientRole unless ``role`` is at least ``min_role``."""
    if role_level(role) < role_level(min_role):
        raise InsufficientRole(
            _ROLE_DENIED_MESSAGES.get(min_role, "You do not have permission")
        )


async def resolve(
    identity: str,
    min_role: Role,
    session: AsyncSession,
    *,
    company_id: Optional[uuid.UUID] = None,
) -> ResolvedCaller:
    """Resolve the caller's membership and enforce ``min_role``.

    Uses the account's active company unless ``company_id`` is given. A
    cursor that points at a company which no longer exists is treated the
    same as no cursor.
    """
    account = await get_account(identity, session)

    target_company_id = company_id or account.active_company_id
    if target_company_id is None:
        raise NoActiveCompany("You must belong to a company first")

    company = await session.get(Company, target_company_id)
    if not company:
        raise NoActiveCompany("Your active company no longer exists")

    membership = await get_membership(identity, target_company_id, session)
    if not membership:
        raise NotAMember("You are not a member of this company")

    check_role(membership.role, min_role)

    return ResolvedCaller(
        account=account,
        membership=membership,
        company_id=target_company_id,
    )

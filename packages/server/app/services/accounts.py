"""
Account service: registration, profile and the active-company cursor.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Conflict, NotAMember, NotFound
from app.models.company import Company
from app.models.user_account import UserAccount
from app.services.roles import get_account, get_membership

log = structlog.get_logger()


async def create_account(
    caller: str, display_name: str, email: str, session: AsyncSession
) -> UserAccount:
    """Register the calling identity."""
    if await session.get(UserAccount, caller):
        raise Conflict("Account already exists")

    account = UserAccount(
        identity=caller,
        display_name=display_name.strip(),
        email=email.strip(),
    )
    session.add(account)
    await session.flush()

    log.info("account.created", identity=caller)
    return account


async def update_profile(
    caller: str, display_name: str, email: str, session: AsyncSession
) -> UserAccount:
    account = await get_account(caller, session)
    account.display_name = display_name.strip()
    account.email = email.strip()
    session.add(account)
    await session.flush()
    return account


async def switch_active_company(
    caller: str, company_id: uuid.UUID, session: AsyncSession
) -> UserAccount:
    """Point the caller's cursor at another company they belong to."""
    account = await get_account(caller, session)

    if not await session.get(Company, company_id):
        raise NotFound("Company not found")
    if not await get_membership(caller, company_id, session):
        raise NotAMember("You are not a member of this company")

    account.active_company_id = company_id
    session.add(account)
    await session.flush()

    log.info("account.switched_company", identity=caller, company_id=str(company_id))
    return account

"""
Account API endpoints.

POST   /api/v1/account                 - Register the calling identity
GET    /api/v1/account                 - Current account
PATCH  /api/v1/account                 - Update display name / email
PUT    /api/v1/account/active-company  - Switch the active company
GET    /api/v1/account/memberships     - Every company the caller belongs to
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_caller_identity
from app.core.database import get_session
from app.services import accounts as account_service
from app.services.roles import get_account, list_memberships
from signdir_shared.schemas.companies import MemberResponse
from signdir_shared.schemas.users import (
    AccountCreateRequest,
    AccountResponse,
    ProfileUpdateRequest,
    SwitchCompanyRequest,
)

router = APIRouter()


@router.post("", response_model=AccountResponse, status_code=201, tags=["Account"])
async def create_account(
    body: AccountCreateRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await account_service.create_account(caller, body.display_name, body.email, session)


@router.get("", response_model=AccountResponse, tags=["Account"])
async def get_current_account(
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await get_account(caller, session)


@router.patch("", response_model=AccountResponse, tags=["Account"])
async def update_profile(
    body: ProfileUpdateRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await account_service.update_profile(caller, body.display_name, body.email, session)


@router.put("/active-company", response_model=AccountResponse, tags=["Account"])
async def switch_active_company(
    body: SwitchCompanyRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await account_service.switch_active_company(caller, body.company_id, session)


@router.get("/memberships", response_model=List[MemberResponse], tags=["Account"])
async def list_my_memberships(
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    await get_account(caller, session)
    return await list_memberships(caller, session)

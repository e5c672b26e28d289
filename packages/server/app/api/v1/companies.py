"""
Company API endpoints. Everything under /current acts on the caller's
active company.

POST   /api/v1/companies                                     - Create a company
POST   /api/v1/companies/join                                - Join with an invite code
GET    /api/v1/companies/current                             - Active company profile
PATCH  /api/v1/companies/current                             - Update profile (Admin+)
DELETE /api/v1/companies/current                             - Delete company (Owner)
GET    /api/v1/companies/current/capabilities                - Capabilities
PUT    /api/v1/companies/current/capabilities                - Update capabilities (Admin+)
GET    /api/v1/companies/current/invite-codes                - List invite codes (Admin+)
POST   /api/v1/companies/current/invite-codes                - Generate invite code (Admin+)
DELETE /api/v1/companies/current/invite-codes/{code}         - Delete invite code (Admin+)
GET    /api/v1/companies/current/members                     - List members
POST   /api/v1/companies/current/members                     - Add a colleague (Admin+)
DELETE /api/v1/companies/current/members/{identity}          - Remove a colleague (Admin+)
PUT    /api/v1/companies/current/members/{identity}/role     - Change role (Admin+)
POST   /api/v1/companies/current/leave                       - Leave the company
POST   /api/v1/companies/current/transfer-ownership          - Transfer ownership (Owner)
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_caller_identity
from app.core.database import get_session
from app.services import cascade
from app.services import companies as company_service
from app.services import members as member_service
from signdir_shared.schemas.companies import (
    CapabilityResponse,
    CapabilityUpdateRequest,
    ColleagueRequest,
    CompanyCreateRequest,
    CompanyResponse,
    CompanyUpdateRequest,
    InviteCodeCreateRequest,
    InviteCodeResponse,
    JoinCompanyRequest,
    MemberListItem,
    MemberResponse,
    RoleUpdateRequest,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Company lifecycle
# ---------------------------------------------------------------------------


@router.post("", response_model=CompanyResponse, status_code=201, tags=["Companies"])
async def create_company(
    body: CompanyCreateRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await company_service.create_company(
        caller, body.name, body.slug, body.location, session
    )


@router.post("/join", response_model=MemberResponse, status_code=201, tags=["Companies"])
async def join_company(
    body: JoinCompanyRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    """Join a company as Pending by redeeming an invite code."""
    return await company_service.join_company(caller, body.code, session)


@router.get("/current", response_model=CompanyResponse, tags=["Companies"])
async def get_company(
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await company_service.get_active_company(caller, session)


@router.patch("/current", response_model=CompanyResponse, tags=["Companies"])
async def update_company(
    body: CompanyUpdateRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await company_service.update_company_profile(
        caller, body.name, body.slug, body.location, body.bio, body.is_public, session
    )


@router.delete("/current", status_code=204, tags=["Companies"])
async def delete_company(
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    """Permanently delete the company and everything that references it."""
    await cascade.delete_company(caller, session)


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


@router.get("/current/capabilities", response_model=CapabilityResponse, tags=["Companies"])
async def get_capabilities(
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await company_service.get_capabilities(caller, session)


@router.put("/current/capabilities", response_model=CapabilityResponse, tags=["Companies"])
async def update_capabilities(
    body: CapabilityUpdateRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await company_service.update_capabilities(
        caller,
        body.can_install,
        body.has_cnc,
        body.has_large_format,
        body.has_bucket_truck,
        session,
    )


# ---------------------------------------------------------------------------
# Invite codes
# ---------------------------------------------------------------------------


@router.get("/current/invite-codes", response_model=List[InviteCodeResponse], tags=["Invites"])
async def list_invite_codes(
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await company_service.list_invite_codes(caller, session)


@router.post(
    "/current/invite-codes",
    response_model=InviteCodeResponse,
    status_code=201,
    tags=["Invites"],
)
async def generate_invite_code(
    body: InviteCodeCreateRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await company_service.generate_invite_code(caller, body.max_uses, session)


@router.delete("/current/invite-codes/{code}", status_code=204, tags=["Invites"])
async def delete_invite_code(
    code: str,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    await company_service.delete_invite_code(caller, code, session)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@router.get("/current/members", response_model=List[MemberListItem], tags=["Members"])
async def list_members(
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await member_service.list_members(caller, session)


@router.post("/current/members", response_model=MemberResponse, status_code=201, tags=["Members"])
async def add_colleague(
    body: ColleagueRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await member_service.add_colleague(caller, body.identity, session)


@router.delete("/current/members/{identity}", status_code=204, tags=["Members"])
async def remove_colleague(
    identity: str,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    await member_service.remove_colleague(caller, identity, session)


@router.put("/current/members/{identity}/role", response_model=MemberResponse, tags=["Members"])
async def update_user_role(
    identity: str,
    body: RoleUpdateRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await member_service.update_user_role(caller, identity, body.role, session)


@router.post("/current/leave", status_code=204, tags=["Members"])
async def leave_company(
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    await member_service.leave_company(caller, session)


@router.post("/current/transfer-ownership", response_model=CompanyResponse, tags=["Members"])
async def transfer_ownership(
    body: ColleagueRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await member_service.transfer_ownership(caller, body.identity, session)

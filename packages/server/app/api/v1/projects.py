"""
Project API endpoints.

GET    /api/v1/projects                          - Projects our company is invited to or in
POST   /api/v1/projects                          - Create a project (Admin+)
DELETE /api/v1/projects/{project_id}             - Delete a project (owner company)
GET    /api/v1/projects/{project_id}/members     - Participating companies
POST   /api/v1/projects/{project_id}/invite      - Invite a connected company
POST   /api/v1/projects/{project_id}/accept      - Accept an invitation
POST   /api/v1/projects/{project_id}/decline     - Decline an invitation
POST   /api/v1/projects/{project_id}/leave       - Leave the project
POST   /api/v1/projects/{project_id}/kick        - Remove a company (owner company)
GET    /api/v1/projects/{project_id}/chat        - Chat history
POST   /api/v1/projects/{project_id}/chat        - Post to the project room

Leaving and kicking report whether the project dissolved as a result.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_caller_identity
from app.core.database import get_session
from app.services import projects as project_service
from signdir_shared.schemas.connections import ChatCreate, ChatRead
from signdir_shared.schemas.projects import (
    ProjectCreate,
    ProjectDissolvedResponse,
    ProjectMemberRead,
    ProjectRead,
    ProjectTargetRequest,
)

router = APIRouter()


@router.get("", response_model=List[ProjectRead], tags=["Projects"])
async def list_projects(
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.list_projects(caller, session)


@router.post("", response_model=ProjectRead, status_code=201, tags=["Projects"])
async def create_project(
    body: ProjectCreate,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.create_project(caller, body.name, body.description, session)


@router.delete("/{project_id}", status_code=204, tags=["Projects"])
async def delete_project(
    project_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    await project_service.delete_project(caller, project_id, session)


@router.get("/{project_id}/members", response_model=List[ProjectMemberRead], tags=["Projects"])
async def list_project_members(
    project_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.get_project_roster(caller, project_id, session)


@router.post(
    "/{project_id}/invite",
    response_model=ProjectMemberRead,
    status_code=201,
    tags=["Projects"],
)
async def invite_to_project(
    project_id: uuid.UUID,
    body: ProjectTargetRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.invite_to_project(caller, project_id, body.company_id, session)


@router.post("/{project_id}/accept", response_model=ProjectMemberRead, tags=["Projects"])
async def accept_project_invite(
    project_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.accept_project_invite(caller, project_id, session)


@router.post("/{project_id}/decline", status_code=204, tags=["Projects"])
async def decline_project_invite(
    project_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    await project_service.decline_project_invite(caller, project_id, session)


@router.post("/{project_id}/leave", response_model=ProjectDissolvedResponse, tags=["Projects"])
async def leave_project(
    project_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    dissolved = await project_service.leave_project(caller, project_id, session)
    return ProjectDissolvedResponse(dissolved=dissolved)


@router.post("/{project_id}/kick", response_model=ProjectDissolvedResponse, tags=["Projects"])
async def kick_from_project(
    project_id: uuid.UUID,
    body: ProjectTargetRequest,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    dissolved = await project_service.kick_from_project(
        caller, project_id, body.company_id, session
    )
    return ProjectDissolvedResponse(dissolved=dissolved)


@router.get("/{project_id}/chat", response_model=List[ChatRead], tags=["Projects"])
async def list_project_chat(
    project_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.list_project_chat(caller, project_id, session)


@router.post("/{project_id}/chat", response_model=ChatRead, status_code=201, tags=["Projects"])
async def send_project_chat(
    project_id: uuid.UUID,
    body: ChatCreate,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.send_project_chat(caller, project_id, body.text, session)

"""
Connection API endpoints. ``company_id`` is always the other company; the
caller acts for their active company.

GET    /api/v1/connections                                - List connections
POST   /api/v1/connections/{company_id}/request           - Request a connection
POST   /api/v1/connections/{company_id}/accept            - Accept a pending request
POST   /api/v1/connections/{company_id}/decline           - Decline a pending request
POST   /api/v1/connections/{company_id}/cancel            - Cancel our own request
POST   /api/v1/connections/{company_id}/block             - Block a company
POST   /api/v1/connections/{company_id}/unblock           - Lift our block
DELETE /api/v1/connections/{company_id}                   - Disconnect
GET    /api/v1/connections/chat/{connection_id}           - Connection chat history
POST   /api/v1/connections/chat/{connection_id}           - Post to connection chat
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_caller_identity
from app.core.database import get_session
from app.services import connections as connection_service
from signdir_shared.schemas.common import ConnectionStatus
from signdir_shared.schemas.connections import (
    ChatCreate,
    ChatRead,
    ConnectionRead,
    ConnectionRequestCreate,
)

router = APIRouter()


@router.get("", response_model=List[ConnectionRead], tags=["Connections"])
async def list_connections(
    status: Optional[ConnectionStatus] = Query(default=None),
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await connection_service.list_connections(caller, session, status=status)


@router.post("/{company_id}/request", status_code=202, tags=["Connections"])
async def request_connection(
    company_id: uuid.UUID,
    body: ConnectionRequestCreate,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    """Send a connection request.

    The response is identical whether or not the pair is blocked.
    """
    await connection_service.request_connection(caller, company_id, body.message, session)
    return {"status": "sent"}


@router.post("/{company_id}/accept", response_model=ConnectionRead, tags=["Connections"])
async def accept_connection(
    company_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await connection_service.accept_connection(caller, company_id, session)


@router.post("/{company_id}/decline", status_code=204, tags=["Connections"])
async def decline_connection(
    company_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    await connection_service.decline_connection(caller, company_id, session)


@router.post("/{company_id}/cancel", status_code=204, tags=["Connections"])
async def cancel_request(
    company_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    await connection_service.cancel_request(caller, company_id, session)


@router.post("/{company_id}/block", status_code=204, tags=["Connections"])
async def block_company(
    company_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    await connection_service.block_company(caller, company_id, session)


@router.post("/{company_id}/unblock", status_code=204, tags=["Connections"])
async def unblock_company(
    company_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    await connection_service.unblock_company(caller, company_id, session)


@router.delete("/{company_id}", status_code=204, tags=["Connections"])
async def disconnect_company(
    company_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    await connection_service.disconnect_company(caller, company_id, session)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.get("/chat/{connection_id}", response_model=List[ChatRead], tags=["Connections"])
async def list_connection_chat(
    connection_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await connection_service.list_connection_chat(caller, connection_id, session)


@router.post(
    "/chat/{connection_id}",
    response_model=ChatRead,
    status_code=201,
    tags=["Connections"],
)
async def send_connection_chat(
    connection_id: uuid.UUID,
    body: ChatCreate,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await connection_service.send_connection_chat(caller, connection_id, body.text, session)

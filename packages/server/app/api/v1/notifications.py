"""
Notification API endpoints. Recipients only ever see their own rows.

GET    /api/v1/notifications                        - List (optionally per company)
POST   /api/v1/notifications/{notification_id}/read - Mark one as read
POST   /api/v1/notifications/read-all?company_id=   - Mark all as read in a company context
DELETE /api/v1/notifications?company_id=            - Clear read notifications
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_caller_identity
from app.core.database import get_session
from app.services import notifications as notification_service
from signdir_shared.schemas.notifications import NotificationCountResponse, NotificationRead

router = APIRouter()


@router.get("", response_model=List[NotificationRead], tags=["Notifications"])
async def list_notifications(
    company_id: Optional[uuid.UUID] = Query(default=None),
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await notification_service.list_notifications(caller, session, company_id=company_id)


@router.post("/read-all", response_model=NotificationCountResponse, tags=["Notifications"])
async def mark_all_read(
    company_id: uuid.UUID = Query(...),
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    affected = await notification_service.mark_all_notifications_read(caller, company_id, session)
    return NotificationCountResponse(affected=affected)


@router.post("/{notification_id}/read", response_model=NotificationRead, tags=["Notifications"])
async def mark_read(
    notification_id: uuid.UUID,
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    return await notification_service.mark_notification_read(caller, notification_id, session)


@router.delete("", response_model=NotificationCountResponse, tags=["Notifications"])
async def clear_notifications(
    company_id: uuid.UUID = Query(...),
    caller: str = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
):
    affected = await notification_service.clear_notifications(caller, company_id, session)
    return NotificationCountResponse(affected=affected)

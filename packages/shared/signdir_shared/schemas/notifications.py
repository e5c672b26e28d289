from uuid import UUID
from datetime import datetime

from pydantic import BaseModel

from .common import NotificationType


class NotificationRead(BaseModel):
    id: UUID
    recipient: str
    company_id: UUID
    type: NotificationType
    title: str
    body: str
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationCountResponse(BaseModel):
    affected: int

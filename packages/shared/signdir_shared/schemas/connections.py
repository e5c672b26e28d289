from typing import Optional
from uuid import UUID
from datetime import datetime

from pydantic import BaseModel, Field

from .common import ConnectionStatus


class ConnectionRequestCreate(BaseModel):
    message: str = Field(default="", max_length=500)


class ChatCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)


class ConnectionRead(BaseModel):
    id: UUID
    company_a: UUID
    company_b: UUID
    status: ConnectionStatus
    requested_by: str
    blocking_company_id: Optional[UUID] = None
    initial_message: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ChatRead(BaseModel):
    id: UUID
    sender: str
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}

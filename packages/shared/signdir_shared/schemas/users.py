"""Account schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class AccountCreateRequest(BaseModel):
    display_name: str = Field(min_length=1, max_length=50)
    email: EmailStr


class ProfileUpdateRequest(BaseModel):
    display_name: str = Field(min_length=1, max_length=50)
    email: EmailStr


class SwitchCompanyRequest(BaseModel):
    company_id: uuid.UUID


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class AccountResponse(BaseModel):
    identity: str
    display_name: str
    email: str
    active_company_id: Optional[uuid.UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}

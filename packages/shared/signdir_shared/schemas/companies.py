"""
Company-related Pydantic schemas shared between server and clients.

Covers: company create/update, capabilities, invite codes and team
membership management.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .common import Role, normalize_slug


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class CompanyCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50, description="Company display name")
    slug: str = Field(..., min_length=1, max_length=50, description="URL-safe company identifier")
    location: str = Field(..., min_length=1, max_length=100)

    @field_validator("name", "location")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("slug")
    @classmethod
    def _normalize_slug(cls, value: str) -> str:
        slug = normalize_slug(value)
        if not slug:
            raise ValueError("slug must contain letters or digits")
        return slug


class CompanyUpdateRequest(CompanyCreateRequest):
    bio: str = Field(default="", max_length=500)
    is_public: bool = False


class CapabilityUpdateRequest(BaseModel):
    can_install: bool = False
    has_cnc: bool = False
    has_large_format: bool = False
    has_bucket_truck: bool = False


class InviteCodeCreateRequest(BaseModel):
    max_uses: int = Field(default=1, ge=0, description="0 is treated as a single use")


class JoinCompanyRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=32)


class ColleagueRequest(BaseModel):
    identity: str = Field(..., min_length=1)


class RoleUpdateRequest(BaseModel):
    role: Role


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class CompanyResponse(BaseModel):
    id: uuid.UUID
    owner_identity: str
    name: str
    slug: str
    location: str
    bio: str
    is_public: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class CapabilityResponse(CapabilityUpdateRequest):
    company_id: uuid.UUID

    model_config = {"from_attributes": True}


class InviteCodeResponse(BaseModel):
    code: str
    company_id: uuid.UUID
    created_by: str
    uses_remaining: int

    model_config = {"from_attributes": True}


class MemberResponse(BaseModel):
    id: uuid.UUID
    identity: str
    company_id: uuid.UUID
    role: Role
    joined_at: datetime

    model_config = {"from_attributes": True}


class MemberListItem(BaseModel):
    identity: str
    display_name: Optional[str] = None
    role: Role
    joined_at: datetime

"""Invite codes and the used-code ledger."""

import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class InviteCode(CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "invite_codes"

    code: str = Field(primary_key=True)
    company_id: uuid.UUID = Field(nullable=False, index=True)
    created_by: str = Field(nullable=False)
    uses_remaining: int = Field(nullable=False, default=1)


class UsedInviteCode(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    """Append-only: stops an identity from reusing a code after leaving."""

    __tablename__ = "used_invite_codes"

    identity: str = Field(nullable=False, index=True)
    code: str = Field(nullable=False, index=True)
    company_id: uuid.UUID = Field(nullable=False, index=True)

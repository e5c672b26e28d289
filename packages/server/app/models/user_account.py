"""User account model (one row per caller identity)."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin


class UserAccount(CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "user_accounts"

    identity: str = Field(primary_key=True)
    display_name: str = Field(nullable=False)
    email: str = Field(nullable=False)
    # Cursor into the caller's memberships, not an authority
    active_company_id: Optional[uuid.UUID] = Field(default=None, index=True)

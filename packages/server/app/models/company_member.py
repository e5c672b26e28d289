"""Company membership (identity x company, carries the role)."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class CompanyMember(UUIDMixin, SQLModel, table=True):
    __tablename__ = "company_members"
    __table_args__ = (
        sa.UniqueConstraint("identity", "company_id", name="uq_company_members_identity_company"),
    )

    identity: str = Field(nullable=False, index=True)
    company_id: uuid.UUID = Field(nullable=False, index=True)
    role: str = Field(nullable=False, default="pending")  # owner | admin | member | installer | field | pending
    joined_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )

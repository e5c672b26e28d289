"""Project rooms, per-company participation and project chat."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    owner_company_id: uuid.UUID = Field(nullable=False, index=True)
    name: str = Field(nullable=False)
    description: str = Field(default="", nullable=False)
    created_by: str = Field(nullable=False)


class ProjectMember(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "project_members"

    project_id: uuid.UUID = Field(nullable=False, index=True)
    company_id: uuid.UUID = Field(nullable=False, index=True)
    status: str = Field(nullable=False, default="invited")  # invited | accepted | left | kicked
    invited_by: str = Field(nullable=False)
    joined_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))


class ProjectChat(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "project_chats"

    project_id: uuid.UUID = Field(nullable=False, index=True)
    sender: str = Field(nullable=False)
    text: str = Field(nullable=False)

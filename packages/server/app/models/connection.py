"""Inter-company connection and its chat."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Connection(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "connections"
    __table_args__ = (
        sa.UniqueConstraint("company_a", "company_b", name="uq_connections_pair"),
    )

    # company_a <= company_b always holds
    company_a: uuid.UUID = Field(nullable=False, index=True)
    company_b: uuid.UUID = Field(nullable=False, index=True)
    status: str = Field(nullable=False, default="pending")  # pending | accepted | blocked
    requested_by: str = Field(nullable=False)
    blocking_company_id: Optional[uuid.UUID] = None
    initial_message: str = Field(default="", nullable=False)


class ConnectionChat(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "connection_chats"

    connection_id: uuid.UUID = Field(nullable=False, index=True)
    sender: str = Field(nullable=False)
    text: str = Field(nullable=False)

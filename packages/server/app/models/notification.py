"""Notification model (write-once apart from the read flag)."""

import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Notification(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "notifications"

    recipient: str = Field(nullable=False, index=True)
    company_id: uuid.UUID = Field(nullable=False, index=True)
    type: str = Field(nullable=False)  # see NotificationType
    title: str = Field(nullable=False)
    body: str = Field(default="", nullable=False)
    read: bool = Field(default=False, nullable=False)

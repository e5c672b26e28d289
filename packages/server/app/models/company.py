"""Company and capability models."""

import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Company(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "companies"

    owner_identity: str = Field(nullable=False, index=True)
    name: str = Field(nullable=False, index=True)
    slug: str = Field(unique=True, nullable=False, index=True)
    location: str = Field(nullable=False)
    bio: str = Field(default="", nullable=False)
    is_public: bool = Field(default=False, nullable=False)


class Capability(SQLModel, table=True):
    __tablename__ = "capabilities"

    company_id: uuid.UUID = Field(primary_key=True)
    can_install: bool = Field(default=False, nullable=False)
    has_cnc: bool = Field(default=False, nullable=False)
    has_large_format: bool = Field(default=False, nullable=False)
    has_bucket_truck: bool = Field(default=False, nullable=False)

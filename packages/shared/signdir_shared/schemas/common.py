from enum import Enum
from typing import Optional
import re
import uuid

from pydantic import BaseModel


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    INSTALLER = "installer"
    FIELD = "field"
    PENDING = "pending"


# Single source of truth for the role hierarchy. Higher = more privileged.
ROLE_LEVELS: dict[Role, int] = {
    Role.OWNER: 5,
    Role.ADMIN: 4,
    Role.MEMBER: 3,
    Role.INSTALLER: 2,
    Role.FIELD: 1,
    Role.PENDING: 0,
}


def role_level(role: Role | str) -> int:
    """Numeric level of a role, accepting the enum or its stored value."""
    return ROLE_LEVELS[Role(role)]


def role_at_least(role: Role | str, minimum: Role | str) -> bool:
    return role_level(role) >= role_level(minimum)


class ConnectionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    BLOCKED = "blocked"


class ProjectMemberStatus(str, Enum):
    INVITED = "invited"
    ACCEPTED = "accepted"
    LEFT = "left"
    KICKED = "kicked"


# Statuses that count as current involvement in a project
ACTIVE_PROJECT_STATUSES: tuple[ProjectMemberStatus, ...] = (
    ProjectMemberStatus.INVITED,
    ProjectMemberStatus.ACCEPTED,
)


class NotificationType(str, Enum):
    MEMBER_JOINED = "member_joined"
    ROLE_CHANGED = "role_changed"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"
    CONNECTION_REQUEST = "connection_request"
    CONNECTION_ACCEPTED = "connection_accepted"
    CONNECTION_DECLINED = "connection_declined"
    CONNECTION_CHAT = "connection_chat"
    PROJECT_INVITE = "project_invite"
    PROJECT_ACCEPTED = "project_accepted"
    PROJECT_DECLINED = "project_declined"
    PROJECT_LEFT = "project_left"
    PROJECT_KICKED = "project_kicked"
    PROJECT_CHAT = "project_chat"
    PROJECT_DELETED = "project_deleted"


def normalize_pair(a: uuid.UUID, b: uuid.UUID) -> tuple[uuid.UUID, uuid.UUID]:
    """Order a company pair so that lookups are independent of argument order."""
    return (a, b) if a <= b else (b, a)


_SLUG_STRIP = re.compile(r"[^a-z0-9-]+")
_SLUG_DASHES = re.compile(r"-{2,}")


def normalize_slug(raw: str) -> str:
    """Lowercase, replace whitespace with dashes and drop anything else."""
    slug = "-".join(raw.strip().lower().split())
    slug = _SLUG_STRIP.sub("", slug)
    return _SLUG_DASHES.sub("-", slug).strip("-")


class APIError(BaseModel):
    code: str
    message: str


class APIResponse(BaseModel):
    data: Optional[object] = None
    error: Optional[APIError] = None

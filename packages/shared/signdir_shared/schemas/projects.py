from typing import Optional
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from .common import ProjectMemberStatus


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    description: str = Field(default="", max_length=1000)


class ProjectTargetRequest(BaseModel):
    company_id: UUID


class ProjectDissolvedResponse(BaseModel):
    dissolved: bool


class ProjectRead(BaseModel):
    id: UUID
    owner_company_id: UUID
    name: str
    description: str
    created_by: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ProjectMemberRead(BaseModel):
    id: UUID
    project_id: UUID
    company_id: UUID
    status: ProjectMemberStatus
    invited_by: str
    joined_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# Allowed per-company status transitions. Terminal rows are deleted before a
# re-invite rather than transitioned.
PROJECT_MEMBER_TRANSITIONS: dict[ProjectMemberStatus, list[ProjectMemberStatus]] = {
    ProjectMemberStatus.INVITED: [ProjectMemberStatus.ACCEPTED],
    ProjectMemberStatus.ACCEPTED: [ProjectMemberStatus.LEFT, ProjectMemberStatus.KICKED],
    ProjectMemberStatus.LEFT: [],
    ProjectMemberStatus.KICKED: [],
}


def validate_transition(
    current: ProjectMemberStatus, target: ProjectMemberStatus
) -> tuple[bool, str]:
    """Validate a project membership transition.

    Returns (is_valid, error_message).
    """
    if target in PROJECT_MEMBER_TRANSITIONS[current]:
        return True, ""
    return False, f"Cannot move a {current.value} member to {target.value}"

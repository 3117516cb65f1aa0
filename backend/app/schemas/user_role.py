"""Role assignment schemas."""
import uuid
from datetime import datetime

from pydantic import BaseModel

from app.models.user_role import Role


class RoleAssignRequest(BaseModel):
    role: Role


class UserRoleResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    role: Role
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ContentStats(BaseModel):
    total: int
    draft: int
    in_review: int
    approved: int
    published: int
    unpublished: int


class SystemStats(BaseModel):
    users: int
    content: ContentStats

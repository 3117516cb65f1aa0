"""Audit log schemas."""
import uuid
from datetime import datetime

from pydantic import BaseModel

from app.models.audit_log import AuditAction


class AuditLogFilter(BaseModel):
    user_id: uuid.UUID | None = None
    action: AuditAction | None = None
    resource_type: str | None = None
    resource_id: uuid.UUID | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class AuditLogResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    action: AuditAction
    resource_type: str
    resource_id: uuid.UUID | None = None
    resource_name: str | None = None
    changes: dict | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}

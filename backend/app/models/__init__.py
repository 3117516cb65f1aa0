"""SQLAlchemy ORM models - all 7 tables."""
from app.models.base import Base, CreatedAtMixin, TimestampMixin, UUIDMixin
from app.models.user_role import Role, UserRoleAssignment
from app.models.content import EDITABLE_FIELDS, ContentItem, ContentStatus
from app.models.content_version import ContentVersion
from app.models.workflow import (
    WorkflowApproval,
    WorkflowInstance,
    WorkflowStatus,
    WorkflowStep,
    WorkflowStepStatus,
)
from app.models.audit_log import AuditAction, AuditLog

__all__ = [
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    "UUIDMixin",
    "Role",
    "UserRoleAssignment",
    "EDITABLE_FIELDS",
    "ContentItem",
    "ContentStatus",
    "ContentVersion",
    "WorkflowApproval",
    "WorkflowInstance",
    "WorkflowStatus",
    "WorkflowStep",
    "WorkflowStepStatus",
    "AuditAction",
    "AuditLog",
]

"""Audit trail: recording and reading.

Every successful state-changing operation records exactly one entry. Writing
happens in a SAVEPOINT so that a failed audit insert is logged and reported
without undoing the operation it describes.
"""
import csv
import io
import json
import logging
import uuid

import sentry_sdk
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.middleware.error_handler import NotFound
from app.middleware.metrics import increment
from app.models.audit_log import AuditAction, AuditLog
from app.repositories import audit_repository
from app.schemas.audit import AuditLogFilter, AuditLogResponse
from app.services.auth_service import Principal

logger = logging.getLogger(__name__)

CONTENT_RESOURCE = "content_item"

EXPORT_COLUMNS = [
    "id",
    "user_id",
    "action",
    "resource_type",
    "resource_id",
    "resource_name",
    "changes",
    "ip_address",
    "user_agent",
    "created_at",
]


def _new_entry(
    principal: Principal,
    action: AuditAction,
    resource_type: str,
    resource_id: uuid.UUID | None,
    resource_name: str | None,
    metadata: dict | None,
) -> AuditLog:
    return AuditLog(
        user_id=principal.id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=resource_name,
        changes=metadata,
        ip_address=principal.ip_address,
        user_agent=principal.user_agent[:500] if principal.user_agent else None,
    )


async def record(
    db: AsyncSession,
    principal: Principal,
    action: AuditAction,
    resource_type: str,
    resource_id: uuid.UUID | None,
    resource_name: str | None,
    metadata: dict | None = None,
) -> AuditLog | None:
    """Append one audit entry. Returns None if the write failed."""
    try:
        async with db.begin_nested():
            entry = _new_entry(principal, action, resource_type, resource_id, resource_name, metadata)
            await audit_repository.insert(db, entry)
    except SQLAlchemyError as exc:
        increment("audit_write_failures_total")
        logger.error(
            "Failed to write audit log: action=%s resource=%s/%s user=%s",
            action.value, resource_type, resource_id, principal.id,
            exc_info=True,
        )
        sentry_sdk.capture_exception(exc)
        return None
    return entry


# --- Read side ---

async def list_audit_logs(
    db: AsyncSession, filters: AuditLogFilter, page: int, per_page: int,
) -> tuple[list[AuditLog], int]:
    return await audit_repository.list_logs(db, filters, skip=(page - 1) * per_page, limit=per_page)


async def get_audit_log(db: AsyncSession, log_id: uuid.UUID) -> AuditLog:
    log = await audit_repository.get_by_id(db, log_id)
    if log is None:
        raise NotFound("Audit log not found")
    return log


async def export_audit_logs(db: AsyncSession, filters: AuditLogFilter) -> list[dict]:
    logs = await audit_repository.list_for_export(db, filters, settings.AUDIT_EXPORT_MAX_ROWS)
    return [AuditLogResponse.model_validate(log).model_dump(mode="json") for log in logs]


def _csv_value(value):
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return value


def to_csv(rows: list[dict]) -> str:
    if not rows:
        return ""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({key: _csv_value(row.get(key)) for key in EXPORT_COLUMNS})
    return buffer.getvalue()

"""Audit log data access layer. Read-only apart from ``insert``."""
import uuid as _uuid

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog
from app.schemas.audit import AuditLogFilter


def _apply_filters(q: Select, filters: AuditLogFilter) -> Select:
    if filters.user_id:
        q = q.where(AuditLog.user_id == filters.user_id)
    if filters.action:
        q = q.where(AuditLog.action == filters.action)
    if filters.resource_type:
        q = q.where(AuditLog.resource_type == filters.resource_type)
    if filters.resource_id:
        q = q.where(AuditLog.resource_id == filters.resource_id)
    if filters.start_date:
        q = q.where(AuditLog.created_at >= filters.start_date)
    if filters.end_date:
        q = q.where(AuditLog.created_at <= filters.end_date)
    return q


async def insert(db: AsyncSession, entry: AuditLog) -> AuditLog:
    db.add(entry)
    await db.flush()
    return entry


async def get_by_id(db: AsyncSession, log_id: _uuid.UUID) -> AuditLog | None:
    return (await db.execute(select(AuditLog).where(AuditLog.id == log_id))).scalar_one_or_none()


async def list_logs(
    db: AsyncSession, filters: AuditLogFilter, *, skip: int = 0, limit: int = 20,
) -> tuple[list[AuditLog], int]:
    q = _apply_filters(select(AuditLog), filters)
    count_q = select(func.count()).select_from(q.subquery())

    total = (await db.execute(count_q)).scalar() or 0
    rows = (await db.execute(q.order_by(AuditLog.created_at.desc()).offset(skip).limit(limit))).scalars().all()
    return list(rows), total


async def list_for_export(db: AsyncSession, filters: AuditLogFilter, limit: int) -> list[AuditLog]:
    q = _apply_filters(select(AuditLog), filters).order_by(AuditLog.created_at.desc()).limit(limit)
    return list((await db.execute(q)).scalars().all())

"""Audit log API - 3 endpoints."""
import uuid
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db, require_action
from app.models.audit_log import AuditAction
from app.schemas.audit import AuditLogFilter, AuditLogResponse
from app.schemas.common import APIResponse, PaginationMeta
from app.services import audit_service
from app.services.auth_service import Principal
from app.services.role_service import Action
from app.utils.helpers import utc_now

router = APIRouter()


def _filters(
    user_id: uuid.UUID | None = None,
    action: AuditAction | None = None,
    resource_type: str | None = None,
    resource_id: uuid.UUID | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> AuditLogFilter:
    return AuditLogFilter(
        user_id=user_id, action=action, resource_type=resource_type,
        resource_id=resource_id, start_date=start_date, end_date=end_date,
    )


# GET /audit - publisher, admin
@router.get("", response_model=APIResponse)
async def list_audit_logs(
    filters: AuditLogFilter = Depends(_filters),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    _principal: Principal = require_action(Action.VIEW_AUDIT_LOG),
    db: AsyncSession = Depends(get_db),
):
    logs, total = await audit_service.list_audit_logs(db, filters, page, per_page)
    return APIResponse(
        status="success",
        data=[AuditLogResponse.model_validate(log).model_dump() for log in logs],
        pagination=PaginationMeta(
            total=total, page=page, per_page=per_page,
            has_next=(page * per_page < total),
        ),
    )


# GET /audit/export - admin
@router.get("/export")
async def export_audit_logs(
    filters: AuditLogFilter = Depends(_filters),
    export_format: Literal["csv", "json"] = Query("json", alias="format"),
    _principal: Principal = require_action(Action.EXPORT_AUDIT_LOG),
    db: AsyncSession = Depends(get_db),
):
    rows = await audit_service.export_audit_logs(db, filters)
    exported_at = utc_now()
    if export_format == "csv":
        filename = f"audit-logs-{exported_at.strftime('%Y%m%d%H%M%S')}.csv"
        return Response(
            content=audit_service.to_csv(rows),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return APIResponse(
        status="success",
        data={"exported_at": exported_at.isoformat(), "count": len(rows), "data": rows},
    )


# GET /audit/{log_id} - publisher, admin
@router.get("/{log_id}", response_model=APIResponse)
async def get_audit_log(
    log_id: uuid.UUID,
    _principal: Principal = require_action(Action.VIEW_AUDIT_LOG),
    db: AsyncSession = Depends(get_db),
):
    log = await audit_service.get_audit_log(db, log_id)
    return APIResponse(status="success", data=AuditLogResponse.model_validate(log).model_dump())

"""Content versions API - 4 endpoints."""
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.dependencies import get_current_principal, get_db
from app.schemas.common import APIResponse
from app.schemas.content import ContentResponse
from app.schemas.version import (
    ContentVersionResponse,
    RollbackRequest,
    VersionComparison,
    VersionDifferences,
)
from app.services import version_service
from app.services.auth_service import Principal

router = APIRouter()


# GET /versions?content_id=...&limit=...
@router.get("", response_model=APIResponse)
async def list_versions(
    content_id: uuid.UUID,
    limit: int = Query(settings.VERSION_LIST_DEFAULT_LIMIT, ge=1, le=settings.VERSION_LIST_MAX_LIMIT),
    _principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    versions = await version_service.list_versions(db, content_id, limit)
    return APIResponse(
        status="success",
        data={"versions": [ContentVersionResponse.model_validate(v).model_dump() for v in versions]},
    )


# GET /versions/compare - declared before /{version_id} so it is not captured by it
@router.get("/compare", response_model=APIResponse)
async def compare_versions(
    version_id_1: uuid.UUID,
    version_id_2: uuid.UUID,
    _principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    v1, v2, differences = await version_service.compare_versions(db, version_id_1, version_id_2)
    comparison = VersionComparison(
        version_1=ContentVersionResponse.model_validate(v1),
        version_2=ContentVersionResponse.model_validate(v2),
        differences=VersionDifferences(**differences),
    )
    return APIResponse(status="success", data=comparison.model_dump())


# POST /versions/rollback - anyone who may edit the content
@router.post("/rollback", response_model=APIResponse)
async def rollback(
    body: RollbackRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    content = await version_service.rollback(db, body.content_id, body.version_number, principal)
    return APIResponse(
        status="success",
        data={"content": ContentResponse.model_validate(content).model_dump()},
        message=f"Rolled back to version {body.version_number}",
    )


# GET /versions/{version_id}
@router.get("/{version_id}", response_model=APIResponse)
async def get_version(
    version_id: uuid.UUID,
    _principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    version = await version_service.get_version(db, version_id)
    return APIResponse(status="success", data=ContentVersionResponse.model_validate(version).model_dump())

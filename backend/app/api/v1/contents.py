"""Contents API - 5 endpoints."""
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_current_principal, get_db
from app.models.content import ContentStatus
from app.schemas.common import APIResponse, PaginationMeta
from app.schemas.content import ContentCreate, ContentFilter, ContentResponse, ContentUpdate
from app.services import content_service
from app.services.auth_service import Principal

router = APIRouter()


# GET /contents
@router.get("", response_model=APIResponse)
async def list_contents(
    status_filter: ContentStatus | None = Query(None, alias="status"),
    author_id: uuid.UUID | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    _principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    filters = ContentFilter(
        status=status_filter, author_id=author_id, search=search, page=page, per_page=per_page,
    )
    contents, total = await content_service.list_contents(db, filters)
    return APIResponse(
        status="success",
        data=[ContentResponse.model_validate(c).model_dump() for c in contents],
        pagination=PaginationMeta(
            total=total, page=page, per_page=per_page,
            has_next=(page * per_page < total),
        ),
    )


# POST /contents - every role
@router.post("", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def create_content(
    body: ContentCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    content = await content_service.create_content(db, body, principal)
    return APIResponse(
        status="success",
        data=ContentResponse.model_validate(content).model_dump(),
        message="Content created",
    )


# GET /contents/{content_id}
@router.get("/{content_id}", response_model=APIResponse)
async def get_content(
    content_id: uuid.UUID,
    _principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    content = await content_service.get_content(db, content_id)
    return APIResponse(status="success", data=ContentResponse.model_validate(content).model_dump())


# PATCH /contents/{content_id} - author of the content, editor, approver, publisher, admin
@router.patch("/{content_id}", response_model=APIResponse)
async def update_content(
    content_id: uuid.UUID,
    body: ContentUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    content = await content_service.update_content(db, content_id, body, principal)
    return APIResponse(
        status="success",
        data=ContentResponse.model_validate(content).model_dump(),
        message="Content updated",
    )


# DELETE /contents/{content_id} - admin
@router.delete("/{content_id}", response_model=APIResponse)
async def delete_content(
    content_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    await content_service.delete_content(db, content_id, principal)
    return APIResponse(status="success", message="Content deleted")

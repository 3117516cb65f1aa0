"""Content business logic: create, read, edit and delete.

Status is never touched here; see app.services.workflow_service.
"""
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.error_handler import NotFound, ValidationFailed
from app.models.audit_log import AuditAction
from app.models.content import ContentItem, ContentStatus
from app.repositories import content_repository
from app.schemas.content import ContentCreate, ContentFilter, ContentUpdate
from app.services import audit_service, role_service, version_service
from app.services.auth_service import Principal
from app.services.role_service import Action
from app.utils.helpers import slugify

logger = logging.getLogger(__name__)


async def _ensure_slug_free(db: AsyncSession, slug: str, content_id: uuid.UUID | None = None) -> None:
    holder = await content_repository.get_by_slug(db, slug)
    if holder is not None and holder.id != content_id:
        raise ValidationFailed(
            "Invalid content data",
            details=[{"loc": ["slug"], "msg": f"'{slug}' is already taken"}],
        )


async def create_content(db: AsyncSession, data: ContentCreate, principal: Principal) -> ContentItem:
    role_service.require_permission(principal, Action.CREATE_CONTENT)

    fields = data.model_dump(mode="json", exclude_none=True)
    fields["slug"] = fields.get("slug") or slugify(data.title)
    if not fields["slug"]:
        raise ValidationFailed(
            "Invalid content data",
            details=[{"loc": ["slug"], "msg": "slug could not be derived from title"}],
        )
    await _ensure_slug_free(db, fields["slug"])

    content = await content_repository.create(db, ContentItem(
        **fields,
        status=ContentStatus.DRAFT,
        author_id=principal.id,
    ))
    await version_service.snapshot(db, content, principal)
    await audit_service.record(
        db, principal, AuditAction.CREATE, audit_service.CONTENT_RESOURCE, content.id, content.title,
    )
    return content


async def get_content(db: AsyncSession, content_id: uuid.UUID) -> ContentItem:
    content = await content_repository.get_by_id(db, content_id)
    if content is None:
        raise NotFound("Content not found")
    return content


async def list_contents(db: AsyncSession, filters: ContentFilter) -> tuple[list[ContentItem], int]:
    return await content_repository.list_contents(
        db,
        status=filters.status,
        author_id=filters.author_id,
        search=filters.search,
        skip=(filters.page - 1) * filters.per_page,
        limit=filters.per_page,
    )


async def update_content(
    db: AsyncSession, content_id: uuid.UUID, data: ContentUpdate, principal: Principal,
) -> ContentItem:
    content = await content_repository.get_for_update(db, content_id)
    if content is None:
        raise NotFound("Content not found")
    role_service.require_edit_permission(
        principal, content, "You do not have permission to edit this content",
    )

    update_data = data.model_dump(mode="json", exclude_unset=True)
    if update_data.get("title") is None:
        update_data.pop("title", None)
    if update_data.get("slug") is None:
        update_data.pop("slug", None)
    else:
        await _ensure_slug_free(db, update_data["slug"], content.id)

    changed = [key for key, value in update_data.items() if getattr(content, key) != value]
    for key in changed:
        setattr(content, key, update_data[key])
    if not changed:
        return content

    content = await content_repository.update(db, content)
    await version_service.snapshot(db, content, principal)
    await audit_service.record(
        db, principal, AuditAction.UPDATE, audit_service.CONTENT_RESOURCE, content.id, content.title,
        {"fields": sorted(changed)},
    )
    return content


async def delete_content(db: AsyncSession, content_id: uuid.UUID, principal: Principal) -> None:
    """Admin-only hard delete; outside the workflow."""
    role_service.require_permission(principal, Action.DELETE_CONTENT)
    content = await content_repository.get_by_id(db, content_id)
    if content is None:
        raise NotFound("Content not found")

    title = content.title
    await content_repository.delete(db, content)
    await audit_service.record(
        db, principal, AuditAction.DELETE, audit_service.CONTENT_RESOURCE, content_id, title,
    )
    logger.info("Content %s deleted by %s", content_id, principal.id)

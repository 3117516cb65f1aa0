"""Content versioning: snapshots, history, comparison and rollback."""
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.middleware.error_handler import NotFound, ValidationFailed
from app.models.audit_log import AuditAction
from app.models.content import EDITABLE_FIELDS, ContentItem
from app.models.content_version import ContentVersion
from app.repositories import content_repository, version_repository
from app.services import audit_service, role_service
from app.services.auth_service import Principal
from app.utils.helpers import canonical_json

logger = logging.getLogger(__name__)

# Fields reported by compare_versions
COMPARED_FIELDS: tuple[str, ...] = (
    "title",
    "slug",
    "excerpt",
    "hero_image_url",
    "page_data",
    "meta_title",
    "meta_description",
)

_SNAPSHOT_ATTEMPTS = 3


def _same_snapshot(version: ContentVersion, content: ContentItem) -> bool:
    return all(
        canonical_json(getattr(version, field)) == canonical_json(getattr(content, field))
        for field in EDITABLE_FIELDS
    )


async def snapshot(db: AsyncSession, content: ContentItem, principal: Principal) -> ContentVersion | None:
    """Record the content's editable fields as the next version.

    Skipped when nothing changed since the latest version. A concurrent writer
    taking the same number trips the unique constraint and we retry with the
    next number.
    """
    latest = await version_repository.get_latest(db, content.id)
    if latest is not None and _same_snapshot(latest, content):
        return None

    for attempt in range(_SNAPSHOT_ATTEMPTS):
        next_number = await version_repository.max_version_number(db, content.id) + 1
        version = ContentVersion(
            content_id=content.id,
            version_number=next_number,
            created_by=principal.id,
            **content.editable_snapshot(),
        )
        try:
            async with db.begin_nested():
                db.add(version)
                await db.flush()
        except IntegrityError:
            logger.info(
                "Version %s of content %s already taken (attempt %d), retrying",
                next_number, content.id, attempt + 1,
            )
            continue
        return version
    raise RuntimeError(f"Could not allocate a version number for content {content.id}")


async def list_versions(db: AsyncSession, content_id: uuid.UUID, limit: int | None = None) -> list[ContentVersion]:
    if limit is None:
        limit = settings.VERSION_LIST_DEFAULT_LIMIT
    if not 1 <= limit <= settings.VERSION_LIST_MAX_LIMIT:
        raise ValidationFailed(
            "Invalid query parameters",
            details=[{"loc": ["limit"], "msg": f"limit must be between 1 and {settings.VERSION_LIST_MAX_LIMIT}"}],
        )
    return await version_repository.list_for_content(db, content_id, limit)


async def get_version(db: AsyncSession, version_id: uuid.UUID) -> ContentVersion:
    version = await version_repository.get_by_id(db, version_id)
    if version is None:
        raise NotFound("Version not found")
    return version


def diff_versions(v1: ContentVersion, v2: ContentVersion) -> dict[str, bool]:
    return {
        field: canonical_json(getattr(v1, field)) != canonical_json(getattr(v2, field))
        for field in COMPARED_FIELDS
    }


async def compare_versions(
    db: AsyncSession, version_id_1: uuid.UUID, version_id_2: uuid.UUID,
) -> tuple[ContentVersion, ContentVersion, dict[str, bool]]:
    v1 = await version_repository.get_by_id(db, version_id_1)
    v2 = await version_repository.get_by_id(db, version_id_2)
    if v1 is None or v2 is None:
        raise NotFound("One or both versions not found")
    return v1, v2, diff_versions(v1, v2)


async def rollback(
    db: AsyncSession, content_id: uuid.UUID, version_number: int, principal: Principal,
) -> ContentItem:
    """Restore the editable fields of ``version_number``. Status is left alone."""
    content = await content_repository.get_for_update(db, content_id)
    if content is None:
        raise NotFound("Content not found")
    version = await version_repository.get_by_number(db, content_id, version_number)
    if version is None:
        raise NotFound("Version not found")

    role_service.require_edit_permission(
        principal, content, "You do not have permission to rollback this content",
    )

    if version.slug != content.slug:
        holder = await content_repository.get_by_slug(db, version.slug)
        if holder is not None and holder.id != content.id:
            raise ValidationFailed(
                "Slug of this version is now used by another content item",
                details=[{"loc": ["slug"], "msg": f"'{version.slug}' is already taken"}],
            )

    for field in EDITABLE_FIELDS:
        setattr(content, field, getattr(version, field))
    content = await content_repository.update(db, content)

    await snapshot(db, content, principal)
    await audit_service.record(
        db, principal, AuditAction.UPDATE, audit_service.CONTENT_RESOURCE, content.id, content.title,
        {"action": "rollback", "rolled_back_to_version": version_number},
    )
    logger.info("Content %s rolled back to version %d by %s", content.id, version_number, principal.id)
    return content

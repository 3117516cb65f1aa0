"""Content data access layer."""
import uuid as _uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.content import ContentItem, ContentStatus


async def get_by_id(db: AsyncSession, content_id: _uuid.UUID) -> ContentItem | None:
    return (await db.execute(select(ContentItem).where(ContentItem.id == content_id))).scalar_one_or_none()


async def get_for_update(db: AsyncSession, content_id: _uuid.UUID) -> ContentItem | None:
    """Load and row-lock a content item for the rest of the transaction."""
    q = select(ContentItem).where(ContentItem.id == content_id).with_for_update()
    return (await db.execute(q.execution_options(populate_existing=True))).scalar_one_or_none()


async def get_by_slug(db: AsyncSession, slug: str) -> ContentItem | None:
    return (await db.execute(select(ContentItem).where(ContentItem.slug == slug))).scalar_one_or_none()


async def list_contents(
    db: AsyncSession,
    *,
    status: ContentStatus | None = None,
    author_id: _uuid.UUID | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[ContentItem], int]:
    q = select(ContentItem)
    count_q = select(func.count()).select_from(ContentItem)

    if status:
        q = q.where(ContentItem.status == status)
        count_q = count_q.where(ContentItem.status == status)
    if author_id:
        q = q.where(ContentItem.author_id == author_id)
        count_q = count_q.where(ContentItem.author_id == author_id)
    if search:
        pattern = f"%{search}%"
        cond = or_(ContentItem.title.ilike(pattern), ContentItem.excerpt.ilike(pattern))
        q = q.where(cond)
        count_q = count_q.where(cond)

    total = (await db.execute(count_q)).scalar() or 0
    rows = (await db.execute(q.offset(skip).limit(limit).order_by(ContentItem.created_at.desc()))).scalars().all()
    return list(rows), total


async def list_by_status(db: AsyncSession, status: ContentStatus) -> list[ContentItem]:
    """Oldest change first."""
    q = select(ContentItem).where(ContentItem.status == status).order_by(ContentItem.updated_at.asc())
    return list((await db.execute(q)).scalars().all())


async def create(db: AsyncSession, content: ContentItem) -> ContentItem:
    db.add(content)
    await db.flush()
    await db.refresh(content)
    return content


async def update(db: AsyncSession, content: ContentItem) -> ContentItem:
    await db.flush()
    # updated_at is server-generated and expired by the flush
    await db.refresh(content)
    return content


async def delete(db: AsyncSession, content: ContentItem) -> None:
    await db.delete(content)
    await db.flush()


async def count_by_status(db: AsyncSession) -> dict[ContentStatus, int]:
    """Every status is present, zero when no content holds it."""
    q = select(ContentItem.status, func.count()).group_by(ContentItem.status)
    counts = {status: 0 for status in ContentStatus}
    for status, total in (await db.execute(q)).all():
        counts[status] = total
    return counts

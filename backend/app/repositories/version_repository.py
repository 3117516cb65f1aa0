"""Content version data access layer."""
import uuid as _uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.content_version import ContentVersion


async def get_by_id(db: AsyncSession, version_id: _uuid.UUID) -> ContentVersion | None:
    return (await db.execute(select(ContentVersion).where(ContentVersion.id == version_id))).scalar_one_or_none()


async def get_by_number(db: AsyncSession, content_id: _uuid.UUID, version_number: int) -> ContentVersion | None:
    q = select(ContentVersion).where(
        ContentVersion.content_id == content_id,
        ContentVersion.version_number == version_number,
    )
    return (await db.execute(q)).scalar_one_or_none()


async def get_latest(db: AsyncSession, content_id: _uuid.UUID) -> ContentVersion | None:
    q = (
        select(ContentVersion)
        .where(ContentVersion.content_id == content_id)
        .order_by(ContentVersion.version_number.desc())
        .limit(1)
    )
    return (await db.execute(q)).scalar_one_or_none()


async def max_version_number(db: AsyncSession, content_id: _uuid.UUID) -> int:
    q = select(func.max(ContentVersion.version_number)).where(ContentVersion.content_id == content_id)
    return (await db.execute(q)).scalar() or 0


async def list_for_content(db: AsyncSession, content_id: _uuid.UUID, limit: int) -> list[ContentVersion]:
    q = (
        select(ContentVersion)
        .where(ContentVersion.content_id == content_id)
        .order_by(ContentVersion.version_number.desc())
        .limit(limit)
    )
    return list((await db.execute(q)).scalars().all())

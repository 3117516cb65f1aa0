"""Content item ORM model."""
import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin, pg_enum


class ContentStatus(str, enum.Enum):
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"


# Fields a version snapshot captures and a rollback restores.
EDITABLE_FIELDS: tuple[str, ...] = (
    "title",
    "slug",
    "excerpt",
    "hero_image_url",
    "page_data",
    "meta_title",
    "meta_description",
    "meta_keywords",
)


class ContentItem(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "content_items"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    excerpt: Mapped[str | None] = mapped_column(String(500), nullable=True)
    hero_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    page_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    meta_title: Mapped[str | None] = mapped_column(String(60), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(String(160), nullable=True)
    meta_keywords: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    # Written only by app.services.workflow_service transitions.
    status: Mapped[ContentStatus] = mapped_column(
        pg_enum(ContentStatus, name="content_status"), nullable=False, default=ContentStatus.DRAFT
    )
    author_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    publish_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    unpublish_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def editable_snapshot(self) -> dict:
        return {field: getattr(self, field) for field in EDITABLE_FIELDS}

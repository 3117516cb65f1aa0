"""Content request/response schemas."""
import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, HttpUrl

from app.models.content import ContentStatus

SLUG_PATTERN = r"^[a-z0-9-]+$"

BlockType = Literal[
    "Hero",
    "RichText",
    "CTA",
    "Cards",
    "Accordion",
    "Stats",
    "ImageGallery",
    "Embed",
    "Downloads",
    "RelatedContent",
]


class Block(BaseModel):
    id: str
    type: BlockType
    data: dict[str, Any]


class PageData(BaseModel):
    blocks: list[Block]


class ContentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    excerpt: str | None = Field(None, max_length=500)
    hero_image_url: HttpUrl | None = None
    page_data: PageData | None = None
    meta_title: str | None = Field(None, max_length=60)
    meta_description: str | None = Field(None, max_length=160)
    meta_keywords: list[str] | None = None

    model_config = {"extra": "forbid"}


class ContentUpdate(BaseModel):
    """Editable fields only. ``status`` is changed through /workflow, never here."""
    title: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    excerpt: str | None = Field(None, max_length=500)
    hero_image_url: HttpUrl | None = None
    page_data: PageData | None = None
    meta_title: str | None = Field(None, max_length=60)
    meta_description: str | None = Field(None, max_length=160)
    meta_keywords: list[str] | None = None

    model_config = {"extra": "forbid"}


class ContentFilter(BaseModel):
    status: ContentStatus | None = None
    author_id: uuid.UUID | None = None
    search: str | None = None
    page: int = 1
    per_page: int = 20


class ContentResponse(BaseModel):
    id: uuid.UUID
    title: str
    slug: str
    excerpt: str | None = None
    hero_image_url: str | None = None
    page_data: dict | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: list[str] | None = None
    status: ContentStatus
    author_id: uuid.UUID
    publish_at: datetime | None = None
    unpublish_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

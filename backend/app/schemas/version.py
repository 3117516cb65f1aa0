"""Content version schemas."""
import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class RollbackRequest(BaseModel):
    content_id: uuid.UUID
    version_number: int = Field(ge=1)


class ContentVersionResponse(BaseModel):
    id: uuid.UUID
    content_id: uuid.UUID
    version_number: int
    title: str
    slug: str
    excerpt: str | None = None
    hero_image_url: str | None = None
    page_data: dict | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: list[str] | None = None
    created_by: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class VersionDifferences(BaseModel):
    title: bool
    slug: bool
    excerpt: bool
    hero_image_url: bool
    page_data: bool
    meta_title: bool
    meta_description: bool


class VersionComparison(BaseModel):
    version_1: ContentVersionResponse
    version_2: ContentVersionResponse
    differences: VersionDifferences

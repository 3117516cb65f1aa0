"""Shared response schemas."""
from typing import Any, Literal

from pydantic import BaseModel


class PaginationMeta(BaseModel):
    total: int
    page: int | None = None
    per_page: int | None = None
    has_next: bool


class APIResponse(BaseModel):
    status: Literal["success", "error"]
    data: Any = None
    message: str | None = None
    pagination: PaginationMeta | None = None


class ErrorDetail(BaseModel):
    """Body of every non-2xx response."""
    code: str
    message: str
    details: Any = None

"""
Response shapes reused across routers.

ErrorResponse    — body written by the AppError handlers in errors.py
HealthResponse   — GET /health
MessageResponse  — {success, message} acknowledgement for action endpoints
PaginationMeta   — paging block on admin listings
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    code: str
    field: Optional[str] = None
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"]
    checks: dict[str, str]


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class PaginationMeta(BaseModel):
    """Where a page sits in the full result set; page numbers start at 1."""

    page: int
    page_size: int
    total: int
    has_next: bool

"""
Response DTOs for admin user management.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from schemas.dto.responses.auth import UserProfileResponse
from schemas.dto.responses.common import PaginationMeta


class UserListResponse(BaseModel):
    """Response body for GET /api/admin/users."""

    model_config = ConfigDict(populate_by_name=True)

    users: list[UserProfileResponse]
    pagination: PaginationMeta

"""
Request DTOs for admin-only user and booking management.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.user import Role


class UserListQuery(BaseModel):
    """Query parameters for GET /api/admin/users."""

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    include_deleted: bool = False
    search: Optional[str] = None


class UpdateRoleRequest(BaseModel):
    """Request body for PUT /api/admin/users/{id}/role."""

    model_config = ConfigDict(populate_by_name=True)

    role: Role


class TestDriveListQuery(BaseModel):
    """Query parameters for GET /api/admin/test-drives."""

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    car_id: Optional[str] = None

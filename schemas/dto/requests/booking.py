"""
Request DTOs for test-drive bookings.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TestDriveRequest(BaseModel):
    """Request body for POST /api/cars/{id}/test-drive."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=120)
    phone: str = Field(min_length=5, max_length=32)
    email: Optional[str] = None
    preferred_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("preferred_date", "preferredDate")
    )
    message: Optional[str] = Field(default=None, max_length=2000)

"""
Car document model.

Maps to the `cars` MongoDB collection. Only admins create, update or
soft-delete cars; public reads filter on deleted=False.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel, SoftDeleteFields, TimestampFields

CAR_STATUS_AVAILABLE = "available"


class CarDoc(MongoBaseModel, SoftDeleteFields, TimestampFields):
    """Document model for the `cars` collection."""

    make: str
    model: str
    year: int
    price: float = Field(ge=0)
    color: str = ""
    category: str = "Sedan"
    seats: int = 4
    transmission: str = "Automatic"
    fuel_type: str = "Gasoline"
    engine: str = ""
    horsepower: Optional[int] = None
    status: str = CAR_STATUS_AVAILABLE
    images: list[str] = []
    description: str = ""

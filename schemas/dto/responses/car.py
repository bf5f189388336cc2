"""
Response DTOs for the car catalog, favorites and test drives.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.dto.responses.common import PaginationMeta
from schemas.models.car import CarDoc
from schemas.models.test_drive import TestDriveDoc


class CarResponse(BaseModel):
    """Public car shape; admin responses use the same model."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    make: str
    model: str
    year: int
    price: float
    color: str
    category: str
    seats: int
    transmission: str
    fuel_type: str
    engine: str
    horsepower: Optional[int] = None
    status: str
    images: list[str]
    description: str
    deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, car: CarDoc) -> "CarResponse":
        data = car.model_dump(exclude={"id"})
        return cls(id=str(car.id), **data)


class CarListResponse(BaseModel):
    """Paginated listing: ``pages`` is ceil(total / limit)."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    pages: int
    total: int
    cars: list[CarResponse]


class FavoritesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    favorites: list[str]
    cars: list[CarResponse] = []


class TestDriveResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    phone: str
    email: Optional[str] = None
    car_id: str
    user_id: Optional[str] = None
    preferred_date: Optional[datetime] = None
    message: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, booking: TestDriveDoc) -> "TestDriveResponse":
        return cls(
            id=str(booking.id),
            name=booking.name,
            phone=booking.phone,
            email=booking.email,
            car_id=str(booking.car_id),
            user_id=str(booking.user_id) if booking.user_id else None,
            preferred_date=booking.preferred_date,
            message=booking.message,
            created_at=booking.created_at,
        )


class TestDriveListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bookings: list[TestDriveResponse]
    pagination: PaginationMeta


class ComparisonResponse(BaseModel):
    """Response body for POST /api/gemini/compare-cars."""

    model_config = ConfigDict(populate_by_name=True)

    comparison: str


class GeminiModelInfo(BaseModel):
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    supported_methods: list[str] = []

    @classmethod
    def from_api(cls, model: dict) -> "GeminiModelInfo":
        return cls(
            name=model.get("name", ""),
            display_name=model.get("displayName"),
            description=model.get("description"),
            supported_methods=model.get("supportedGenerationMethods") or [],
        )


class GeminiModelsResponse(BaseModel):
    """Response body for GET /api/gemini/models."""

    total: int
    generate_content_models: list[GeminiModelInfo]

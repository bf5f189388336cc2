"""
Request DTOs for the car catalog.

CarListQuery      — GET /api/cars/listing
AdminCarListQuery — GET /api/admin/cars
CreateCarRequest  — POST /api/admin/cars/create
UpdateCarRequest  — PUT /api/admin/cars/{id}
CompareCarsRequest — POST /api/gemini/compare-cars
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from shared.validators import validate_image_url

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100


def _check_images(images: Optional[list[str]]) -> Optional[list[str]]:
    if images is None:
        return None
    for url in images:
        if not validate_image_url(url):
            raise ValueError(f"Invalid image URL: {url!r}")
    return images


class CarListQuery(BaseModel):
    """Pagination and filter parameters for car listings.

    ``search`` matches make or model case-insensitively; ``category`` and
    ``status`` are exact matches. Empty strings mean "no filter".
    """

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    search: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None


class AdminCarListQuery(CarListQuery):
    """Admin listing parameters; soft-deleted cars are shown unless excluded."""

    include_deleted: bool = True


class CreateCarRequest(BaseModel):
    """Request body for POST /api/admin/cars/create."""

    model_config = ConfigDict(populate_by_name=True)

    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int = Field(ge=1886, le=2100)
    price: float = Field(ge=0)
    color: str = ""
    category: str = "Sedan"
    seats: int = Field(default=4, ge=1, le=20)
    transmission: str = "Automatic"
    fuel_type: str = Field(
        default="Gasoline", validation_alias=AliasChoices("fuel_type", "fuelType")
    )
    engine: str = ""
    horsepower: Optional[int] = Field(default=None, ge=0)
    status: str = "available"
    images: list[str] = []
    description: str = ""

    @field_validator("make", "model")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("images")
    @classmethod
    def _images(cls, v: list[str]) -> list[str]:
        return _check_images(v) or []


class UpdateCarRequest(BaseModel):
    """Request body for PUT /api/admin/cars/{id}.

    All fields are optional; only provided fields are updated.
    """

    model_config = ConfigDict(populate_by_name=True)

    make: Optional[str] = Field(default=None, min_length=1)
    model: Optional[str] = Field(default=None, min_length=1)
    year: Optional[int] = Field(default=None, ge=1886, le=2100)
    price: Optional[float] = Field(default=None, ge=0)
    color: Optional[str] = None
    category: Optional[str] = None
    seats: Optional[int] = Field(default=None, ge=1, le=20)
    transmission: Optional[str] = None
    fuel_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("fuel_type", "fuelType")
    )
    engine: Optional[str] = None
    horsepower: Optional[int] = Field(default=None, ge=0)
    status: Optional[str] = None
    images: Optional[list[str]] = None
    description: Optional[str] = None

    @field_validator("make", "model")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("images")
    @classmethod
    def _images(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        return _check_images(v)

    def updates(self) -> dict[str, Any]:
        """Fields the client actually sent, ready for a $set."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class CompareCarsRequest(BaseModel):
    """Request body for POST /api/gemini/compare-cars.

    Each side is a free-form car description (usually a serialized CarResponse).
    """

    model_config = ConfigDict(populate_by_name=True)

    car_a: dict[str, Any] = Field(validation_alias=AliasChoices("car_a", "carA"))
    car_b: dict[str, Any] = Field(validation_alias=AliasChoices("car_b", "carB"))

"""Public catalog endpoints under /api/cars."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from dependencies import get_booking_service, get_car_service, get_optional_claims
from schemas.dto.requests.booking import TestDriveRequest
from schemas.dto.requests.car import CarListQuery
from schemas.dto.responses.car import CarListResponse, CarResponse, TestDriveResponse
from schemas.models.token import AccessTokenClaims
from services.booking_service import BookingService
from services.car_service import CarService
from shared.pagination import Page

router = APIRouter(prefix="/api/cars", tags=["cars"])


def to_list_response(page: Page) -> CarListResponse:
    return CarListResponse(
        page=page.page,
        pages=page.pages,
        total=page.total,
        cars=[CarResponse.from_doc(car) for car in page.items],
    )


@router.get("/listing", response_model=CarListResponse)
async def list_cars(
    query: Annotated[CarListQuery, Query()],
    cars: CarService = Depends(get_car_service),
) -> CarListResponse:
    return to_list_response(await cars.list_public(query))


@router.get("/{car_id}", response_model=CarResponse)
async def get_car(
    car_id: str,
    cars: CarService = Depends(get_car_service),
) -> CarResponse:
    return CarResponse.from_doc(await cars.get_public(car_id))


@router.post(
    "/{car_id}/test-drive",
    status_code=status.HTTP_201_CREATED,
    response_model=TestDriveResponse,
)
async def book_test_drive(
    car_id: str,
    payload: TestDriveRequest,
    bookings: BookingService = Depends(get_booking_service),
    claims: Optional[AccessTokenClaims] = Depends(get_optional_claims),
) -> TestDriveResponse:
    booking = await bookings.book(car_id, payload, claims.sub if claims else None)
    return TestDriveResponse.from_doc(booking)

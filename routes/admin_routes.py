"""Admin panel endpoints under /api/admin. Every route requires role=admin."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from dependencies import (
    get_booking_service,
    get_car_service,
    get_user_admin_service,
    require_admin,
)
from routes.car_routes import to_list_response
from schemas.dto.requests.admin import TestDriveListQuery, UpdateRoleRequest, UserListQuery
from schemas.dto.requests.car import AdminCarListQuery, CreateCarRequest, UpdateCarRequest
from schemas.dto.responses.admin import UserListResponse
from schemas.dto.responses.auth import UserProfileResponse
from schemas.dto.responses.car import (
    CarListResponse,
    CarResponse,
    TestDriveListResponse,
    TestDriveResponse,
)
from schemas.dto.responses.common import PaginationMeta
from schemas.models.token import AccessTokenClaims
from services.booking_service import BookingService
from services.car_service import CarService
from services.user_admin_service import UserAdminService
from shared.pagination import Page

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def _pagination(page: Page) -> PaginationMeta:
    return PaginationMeta(
        page=page.page, page_size=page.limit, total=page.total, has_next=page.has_next
    )


# ── Cars ──────────────────────────────────────────────────────────────────────


@router.get("/cars", response_model=CarListResponse)
async def list_cars(
    query: Annotated[AdminCarListQuery, Query()],
    cars: CarService = Depends(get_car_service),
) -> CarListResponse:
    return to_list_response(await cars.list_admin(query, query.include_deleted))


@router.get("/cars/{car_id}", response_model=CarResponse)
async def get_car(car_id: str, cars: CarService = Depends(get_car_service)) -> CarResponse:
    return CarResponse.from_doc(await cars.get_admin(car_id))


@router.post(
    "/cars/create", status_code=status.HTTP_201_CREATED, response_model=CarResponse
)
async def create_car(
    payload: CreateCarRequest, cars: CarService = Depends(get_car_service)
) -> CarResponse:
    return CarResponse.from_doc(await cars.create(payload))


@router.put("/cars/{car_id}", response_model=CarResponse)
async def update_car(
    car_id: str,
    payload: UpdateCarRequest,
    cars: CarService = Depends(get_car_service),
) -> CarResponse:
    return CarResponse.from_doc(await cars.update(car_id, payload))


@router.delete("/cars/{car_id}", response_model=CarResponse)
async def delete_car(car_id: str, cars: CarService = Depends(get_car_service)) -> CarResponse:
    return CarResponse.from_doc(await cars.soft_delete(car_id))


@router.post("/cars/{car_id}/restore", response_model=CarResponse)
async def restore_car(car_id: str, cars: CarService = Depends(get_car_service)) -> CarResponse:
    return CarResponse.from_doc(await cars.restore(car_id))


# ── Users ─────────────────────────────────────────────────────────────────────


@router.get("/users", response_model=UserListResponse)
async def list_users(
    query: Annotated[UserListQuery, Query()],
    users: UserAdminService = Depends(get_user_admin_service),
) -> UserListResponse:
    page = await users.list_users(query)
    return UserListResponse(
        users=[UserProfileResponse.from_doc(u) for u in page.items],
        pagination=_pagination(page),
    )


@router.delete("/users/{user_id}", response_model=UserProfileResponse)
async def delete_user(
    user_id: str,
    claims: AccessTokenClaims = Depends(require_admin),
    users: UserAdminService = Depends(get_user_admin_service),
) -> UserProfileResponse:
    return UserProfileResponse.from_doc(await users.soft_delete(user_id, claims.sub))


@router.put("/users/{user_id}/role", response_model=UserProfileResponse)
async def update_user_role(
    user_id: str,
    payload: UpdateRoleRequest,
    claims: AccessTokenClaims = Depends(require_admin),
    users: UserAdminService = Depends(get_user_admin_service),
) -> UserProfileResponse:
    user = await users.set_role(user_id, payload.role, claims.sub)
    return UserProfileResponse.from_doc(user)


# ── Test drives ───────────────────────────────────────────────────────────────


@router.get("/test-drives", response_model=TestDriveListResponse)
async def list_test_drives(
    query: Annotated[TestDriveListQuery, Query()],
    bookings: BookingService = Depends(get_booking_service),
) -> TestDriveListResponse:
    page = await bookings.list(query)
    return TestDriveListResponse(
        bookings=[TestDriveResponse.from_doc(b) for b in page.items],
        pagination=_pagination(page),
    )

"""
Car catalog: public reads (active cars only) and admin mutations.

The make+model pair is unique among non-deleted cars; the check is done here
rather than by an index so soft-deleted cars never block a re-listing.
"""

from __future__ import annotations

from typing import Optional

from errors import ConflictError, NotFoundError, ValidationError
from repositories.car_repository import CarRepository, build_listing_filter
from schemas.dto.requests.car import CarListQuery, CreateCarRequest, UpdateCarRequest
from schemas.models.car import CarDoc
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger
from shared.pagination import Page
from shared.validators import to_object_id

log = get_logger(__name__)


class CarService:
    def __init__(self, cars: CarRepository, clock: Clock = utc_now) -> None:
        self._cars = cars
        self._clock = clock

    async def _list(self, query: CarListQuery, include_deleted: bool) -> Page[CarDoc]:
        mongo_filter = build_listing_filter(
            search=query.search,
            category=query.category,
            status=query.status,
            include_deleted=include_deleted,
        )
        cars, total = await self._cars.list(mongo_filter, query.page, query.limit)
        return Page(items=cars, total=total, page=query.page, limit=query.limit)

    async def list_public(self, query: CarListQuery) -> Page[CarDoc]:
        return await self._list(query, include_deleted=False)

    async def list_admin(
        self, query: CarListQuery, include_deleted: bool = True
    ) -> Page[CarDoc]:
        return await self._list(query, include_deleted=include_deleted)

    async def _get(self, car_id: str, include_deleted: bool) -> CarDoc:
        oid = to_object_id(car_id)
        car = await self._cars.find_by_id(oid, include_deleted) if oid else None
        if car is None:
            raise NotFoundError("Car not found")
        return car

    async def get_public(self, car_id: str) -> CarDoc:
        return await self._get(car_id, include_deleted=False)

    async def get_admin(self, car_id: str) -> CarDoc:
        return await self._get(car_id, include_deleted=True)

    async def _ensure_unique(self, make: str, model: str, exclude_id=None) -> None:
        duplicate = await self._cars.find_active_duplicate(make, model, exclude_id)
        if duplicate is not None:
            raise ConflictError(
                f"A car with make '{make}' and model '{model}' already exists",
                field="model",
                details={"existing_id": str(duplicate.id)},
            )

    async def create(self, request: CreateCarRequest) -> CarDoc:
        await self._ensure_unique(request.make, request.model)
        now = self._clock()
        car = await self._cars.create(
            CarDoc(**request.model_dump(), created_at=now, updated_at=now)
        )
        log.info("car_created", car_id=str(car.id), make=car.make, model=car.model)
        return car

    async def update(self, car_id: str, request: UpdateCarRequest) -> CarDoc:
        updates = request.updates()
        if not updates:
            raise ValidationError("No fields to update")

        current = await self.get_admin(car_id)
        if "make" in updates or "model" in updates:
            await self._ensure_unique(
                updates.get("make", current.make),
                updates.get("model", current.model),
                exclude_id=current.id,
            )

        car = await self._cars.update(current.id, updates, self._clock())
        if car is None:
            raise NotFoundError("Car not found")
        log.info("car_updated", car_id=str(car.id), fields=sorted(updates))
        return car

    async def soft_delete(self, car_id: str) -> CarDoc:
        oid = to_object_id(car_id)
        car = await self._cars.soft_delete(oid, self._clock()) if oid else None
        if car is None:
            raise NotFoundError("Car not found")
        log.info("car_deleted", car_id=str(car.id))
        return car

    async def restore(self, car_id: str) -> CarDoc:
        current = await self.get_admin(car_id)
        if not current.deleted:
            return current
        await self._ensure_unique(current.make, current.model, exclude_id=current.id)
        car: Optional[CarDoc] = await self._cars.restore(current.id, self._clock())
        if car is None:
            raise NotFoundError("Car not found")
        log.info("car_restored", car_id=str(car.id))
        return car

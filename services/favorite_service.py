"""Favorites: a set of car ids on the user document."""

from __future__ import annotations

from bson import ObjectId

from errors import NotFoundError
from repositories.car_repository import CarRepository
from repositories.user_repository import UserRepository
from schemas.models.car import CarDoc
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger
from shared.validators import to_object_id

log = get_logger(__name__)


class FavoriteService:
    def __init__(
        self, users: UserRepository, cars: CarRepository, clock: Clock = utc_now
    ) -> None:
        self._users = users
        self._cars = cars
        self._clock = clock

    @staticmethod
    def _user_oid(user_id: str) -> ObjectId:
        oid = to_object_id(user_id)
        if oid is None:
            raise NotFoundError("User not found")
        return oid

    async def add(self, user_id: str, car_id: str) -> list[ObjectId]:
        """Add *car_id* to the user's favorites. Adding twice is a no-op."""
        car_oid = to_object_id(car_id)
        car = await self._cars.find_by_id(car_oid) if car_oid else None
        if car is None:
            raise NotFoundError("Car not found")

        user = await self._users.add_favorite(
            self._user_oid(user_id), car.id, self._clock()
        )
        if user is None:
            raise NotFoundError("User not found")
        log.info("favorite_added", user_id=user_id, car_id=str(car.id))
        return user.favorites

    async def remove(self, user_id: str, car_id: str) -> list[ObjectId]:
        """Remove *car_id* from the favorites. Removing an absent id is a no-op."""
        car_oid = to_object_id(car_id)
        if car_oid is None:
            raise NotFoundError("Car not found")

        user = await self._users.remove_favorite(
            self._user_oid(user_id), car_oid, self._clock()
        )
        if user is None:
            raise NotFoundError("User not found")
        log.info("favorite_removed", user_id=user_id, car_id=car_id)
        return user.favorites

    async def list(self, user_id: str) -> tuple[list[ObjectId], list[CarDoc]]:
        """Favorite ids plus the cars among them that are still listed."""
        user = await self._users.find_by_id(self._user_oid(user_id))
        if user is None:
            raise NotFoundError("User not found")
        cars = await self._cars.find_active_by_ids(user.favorites)
        return user.favorites, cars

"""Test-drive bookings: public creation, admin listing."""

from __future__ import annotations

from typing import Optional

from errors import NotFoundError, ValidationError
from infrastructure.email.protocol import EmailProvider
from repositories.car_repository import CarRepository
from repositories.test_drive_repository import TestDriveRepository
from schemas.dto.requests.admin import TestDriveListQuery
from schemas.dto.requests.booking import TestDriveRequest
from schemas.models.test_drive import TestDriveDoc
from shared.datetime_utils import Clock, ensure_utc, utc_now
from shared.logging import get_logger
from shared.pagination import Page
from shared.validators import to_object_id, validate_email

log = get_logger(__name__)


class BookingService:
    def __init__(
        self,
        bookings: TestDriveRepository,
        cars: CarRepository,
        email_provider: Optional[EmailProvider] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._bookings = bookings
        self._cars = cars
        self._email = email_provider
        self._clock = clock

    async def book(
        self, car_id: str, request: TestDriveRequest, user_id: Optional[str] = None
    ) -> TestDriveDoc:
        """Record a test-drive request for an active car.

        The confirmation email is best effort: a delivery failure is logged
        and the booking still stands.
        """
        if request.email and not validate_email(request.email):
            raise ValidationError("Invalid email format", field="email")

        car_oid = to_object_id(car_id)
        car = await self._cars.find_by_id(car_oid) if car_oid else None
        if car is None:
            raise NotFoundError("Car not found")

        now = self._clock()
        preferred = ensure_utc(request.preferred_date) if request.preferred_date else None
        if preferred is not None and preferred < now:
            raise ValidationError(
                "Preferred date must be in the future", field="preferred_date"
            )

        booking = await self._bookings.create(
            TestDriveDoc(
                name=request.name.strip(),
                phone=request.phone.strip(),
                email=request.email.strip().lower() if request.email else None,
                car_id=car.id,
                user_id=to_object_id(user_id) if user_id else None,
                preferred_date=preferred,
                message=request.message,
                created_at=now,
            )
        )
        log.info("test_drive_booked", booking_id=str(booking.id), car_id=str(car.id))

        if booking.email and self._email is not None:
            sent = await self._email.send_test_drive_confirmation(
                booking.email, booking.name, f"{car.make} {car.model}", preferred
            )
            if not sent:
                log.warning(
                    "test_drive_confirmation_not_sent", booking_id=str(booking.id)
                )
        return booking

    async def list(self, query: TestDriveListQuery) -> Page[TestDriveDoc]:
        car_oid = None
        if query.car_id:
            car_oid = to_object_id(query.car_id)
            if car_oid is None:
                raise ValidationError("Invalid car id", field="car_id")
        items, total = await self._bookings.list(query.page, query.limit, car_oid)
        return Page(items=items, total=total, page=query.page, limit=query.limit)

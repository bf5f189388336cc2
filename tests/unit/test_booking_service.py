"""Unit tests for BookingService (test-drive requests)."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from errors import NotFoundError, ValidationError
from schemas.dto.requests.admin import TestDriveListQuery as DriveListQuery
from schemas.dto.requests.booking import TestDriveRequest as DriveRequest
from services.booking_service import BookingService


@pytest.fixture
def bookings():
    repo = AsyncMock()
    repo.create.side_effect = lambda b: b.model_copy(update={"id": ObjectId()})
    repo.list.return_value = ([], 0)
    return repo


@pytest.fixture
def cars(car_factory):
    repo = AsyncMock()
    repo.find_by_id.return_value = car_factory()
    return repo


@pytest.fixture
def mailer():
    provider = AsyncMock()
    provider.send_test_drive_confirmation.return_value = True
    return provider


@pytest.fixture
def service(bookings, cars, mailer, clock):
    return BookingService(bookings, cars, mailer, clock=clock)


def _request(**overrides):
    base = {"name": " Bob ", "phone": "555-0100", "email": "Bob@Example.com"}
    base.update(overrides)
    return DriveRequest(**base)


class TestBook:
    async def test_records_booking_and_confirms(self, service, cars, mailer, clock):
        car = cars.find_by_id.return_value
        preferred = clock() + timedelta(days=2)
        user_id = ObjectId()

        booking = await service.book(
            str(car.id), _request(preferred_date=preferred), str(user_id)
        )

        assert booking.name == "Bob"
        assert booking.email == "bob@example.com"
        assert booking.car_id == car.id
        assert booking.user_id == user_id
        assert booking.created_at == clock()
        mailer.send_test_drive_confirmation.assert_awaited_once_with(
            "bob@example.com", "Bob", "Toyota Corolla", preferred
        )

    async def test_anonymous_without_email(self, service, mailer, cars):
        booking = await service.book(str(cars.find_by_id.return_value.id), _request(email=None))
        assert booking.user_id is None
        mailer.send_test_drive_confirmation.assert_not_called()

    async def test_mail_failure_keeps_booking(self, service, bookings, mailer, cars):
        mailer.send_test_drive_confirmation.return_value = False
        booking = await service.book(str(cars.find_by_id.return_value.id), _request())
        assert booking.id is not None
        bookings.create.assert_awaited_once()

    async def test_unknown_car(self, service, cars, bookings):
        cars.find_by_id.return_value = None
        with pytest.raises(NotFoundError):
            await service.book(str(ObjectId()), _request())
        bookings.create.assert_not_called()

    async def test_past_date_rejected(self, service, cars, clock):
        with pytest.raises(ValidationError) as exc:
            await service.book(
                str(cars.find_by_id.return_value.id),
                _request(preferred_date=clock() - timedelta(hours=1)),
            )
        assert exc.value.field == "preferred_date"

    async def test_bad_email_rejected(self, service, cars):
        with pytest.raises(ValidationError):
            await service.book(str(cars.find_by_id.return_value.id), _request(email="bob@"))


class TestList:
    async def test_filters_by_car(self, service, bookings):
        car_id = ObjectId()
        page = await service.list(DriveListQuery(car_id=str(car_id), page=2, limit=5))
        bookings.list.assert_awaited_once_with(2, 5, car_id)
        assert page.page == 2

    async def test_bad_car_filter(self, service):
        with pytest.raises(ValidationError):
            await service.list(DriveListQuery(car_id="nope"))

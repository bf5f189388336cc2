"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests. Tests control config exclusively through monkeypatch.setenv()
or explicit constructor arguments.
"""

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from config import JWTSettings, PasswordResetSettings
from schemas.models.car import CarDoc
from schemas.models.user import UserDoc

ACCESS_SECRET = "access-secret-for-unit-tests-0123456789"
REFRESH_SECRET = "refresh-secret-for-unit-tests-9876543210"


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


class FrozenClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def jwt_settings():
    return JWTSettings(
        jwt_secret=ACCESS_SECRET,
        jwt_refresh_secret=REFRESH_SECRET,
        jwt_private_key="",
        jwt_public_key="",
    )


@pytest.fixture
def reset_settings():
    return PasswordResetSettings(
        otp_ttl_seconds=300,
        reset_token_ttl_seconds=600,
        otp_max_attempts=5,
        otp_max_requests_per_hour=3,
    )


def make_user(**overrides) -> UserDoc:
    base = dict(
        id=ObjectId(),
        username="alice",
        email="alice@example.com",
        password_hash="$argon2id$placeholder",
        role="user",
    )
    base.update(overrides)
    return UserDoc(**base)


def make_car(**overrides) -> CarDoc:
    base = dict(
        id=ObjectId(),
        make="Toyota",
        model="Corolla",
        year=2022,
        price=21000.0,
        category="Sedan",
    )
    base.update(overrides)
    return CarDoc(**base)


@pytest.fixture
def user_factory():
    return make_user


@pytest.fixture
def car_factory():
    return make_car

"""
Integration test fixtures.

Builds the real routers, error handlers and middleware on a bare FastAPI app
with no lifespan. Repository providers are overridden with AsyncMocks so the
real services, token handling and cookie logic run without MongoDB.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi import FastAPI
from fastapi.testclient import TestClient

from config import AppSettings, DatabaseSettings, JWTSettings
from dependencies import (
    get_car_repository,
    get_password_reset_repository,
    get_test_drive_repository,
    get_user_repository,
)
from errors import register_error_handlers
from middleware.request_logging import RequestLoggingMiddleware
from routes.admin_routes import router as admin_router
from routes.auth_routes import router as auth_router
from routes.car_routes import router as car_router
from routes.compare_routes import router as compare_router
from routes.favorite_routes import router as favorite_router
from routes.health_routes import router as health_router
from schemas.models.car import CarDoc
from schemas.models.user import UserDoc
from services.token_service import TokenService
from shared.crypto import hash_password


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in integration tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def settings():
    return AppSettings(
        db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"),
        jwt=JWTSettings(
            jwt_secret="integration-access-secret-0123456789",
            jwt_refresh_secret="integration-refresh-secret-0123456789",
            jwt_private_key="",
            jwt_public_key="",
            # TestClient talks plain http to testserver
            cookie_secure=False,
        ),
    )


@pytest.fixture
def token_service(settings):
    return TokenService(settings.jwt)


@pytest.fixture
def user_repo():
    repo = AsyncMock()
    repo.find_conflict.return_value = None
    repo.find_active_by_email.return_value = None
    repo.find_by_id.return_value = None
    repo.create.side_effect = lambda user: user.model_copy(update={"id": ObjectId()})
    return repo


@pytest.fixture
def car_repo():
    repo = AsyncMock()
    repo.list.return_value = ([], 0)
    repo.find_by_id.return_value = None
    repo.find_active_duplicate.return_value = None
    repo.find_active_by_ids.return_value = []
    repo.create.side_effect = lambda car: car.model_copy(update={"id": ObjectId()})
    return repo


@pytest.fixture
def reset_repo():
    repo = AsyncMock()
    repo.count_recent.return_value = 0
    repo.find_live_otp.return_value = None
    repo.find_by_reset_token.return_value = None
    repo.create.side_effect = lambda r: r.model_copy(update={"id": ObjectId()})
    return repo


@pytest.fixture
def booking_repo():
    repo = AsyncMock()
    repo.list.return_value = ([], 0)
    repo.create.side_effect = lambda b: b.model_copy(update={"id": ObjectId()})
    return repo


@pytest.fixture
def email_provider():
    provider = AsyncMock()
    provider.send_password_reset_otp.return_value = True
    provider.send_test_drive_confirmation.return_value = True
    return provider


@pytest.fixture
def google_verifier():
    verifier = MagicMock()
    verifier.configured = True
    verifier.verify = AsyncMock()
    return verifier


@pytest.fixture
def gemini_client():
    client = MagicMock()
    client.compare_cars = AsyncMock(return_value="Car A is quicker.")
    client.list_models = AsyncMock(return_value=(0, []))
    return client


@pytest.fixture
def app(
    settings,
    token_service,
    user_repo,
    car_repo,
    reset_repo,
    booking_repo,
    email_provider,
    google_verifier,
    gemini_client,
):
    app = FastAPI()
    app.state.settings = settings
    app.state.token_service = token_service
    app.state.email_provider = email_provider
    app.state.google_verifier = google_verifier
    app.state.gemini_client = gemini_client
    db = MagicMock()
    db.client.admin.command = AsyncMock(return_value={"ok": 1})
    app.state.db = db

    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)
    for router in (
        health_router,
        auth_router,
        car_router,
        favorite_router,
        admin_router,
        compare_router,
    ):
        app.include_router(router)

    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_car_repository] = lambda: car_repo
    app.dependency_overrides[get_password_reset_repository] = lambda: reset_repo
    app.dependency_overrides[get_test_drive_repository] = lambda: booking_repo
    return app


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def member():
    return UserDoc(
        id=ObjectId(),
        username="alice",
        email="alice@example.com",
        password_hash=hash_password("secret1"),
        role="user",
    )


@pytest.fixture
def admin():
    return UserDoc(
        id=ObjectId(),
        username="root",
        email="root@example.com",
        password_hash=hash_password("rootpass"),
        role="admin",
    )


@pytest.fixture
def auth_header(token_service):
    def build(user: UserDoc) -> dict:
        return {"Authorization": f"Bearer {token_service.issue_access_token(user)}"}

    return build


@pytest.fixture
def sample_car():
    return CarDoc(
        id=ObjectId(),
        make="Toyota",
        model="Corolla",
        year=2022,
        price=21000,
        category="Sedan",
    )

"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system: settings and database handles from app.state,
repositories and services built per request, and the access-control
dependencies that gate routes on the access token.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import Depends, Request
from pymongo.asynchronous.database import AsyncDatabase

from config import AppSettings
from errors import ForbiddenError
from infrastructure.ai.gemini import GeminiClient
from infrastructure.email.protocol import EmailProvider
from infrastructure.oauth.google import GoogleIdTokenVerifier
from repositories import car_repository, password_reset_repository
from repositories import test_drive_repository, user_repository
from repositories.car_repository import CarRepository
from repositories.password_reset_repository import PasswordResetRepository
from repositories.test_drive_repository import TestDriveRepository
from repositories.user_repository import UserRepository
from schemas.models.token import TOKEN_TYPE_ACCESS, AccessTokenClaims
from schemas.models.user import ROLE_ADMIN
from services.auth_service import AuthService
from services.booking_service import BookingService
from services.car_service import CarService
from services.favorite_service import FavoriteService
from services.password_reset_service import PasswordResetService
from services.token_service import TokenError, TokenService
from services.user_admin_service import UserAdminService
from shared.logging import get_logger

log = get_logger(__name__)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


# ── App-scoped objects ────────────────────────────────────────────────────────


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


async def get_db(request: Request) -> AsyncDatabase:
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_email_provider(request: Request) -> EmailProvider:
    return request.app.state.email_provider


def get_google_verifier(request: Request) -> Optional[GoogleIdTokenVerifier]:
    return getattr(request.app.state, "google_verifier", None)


def get_gemini_client(request: Request) -> GeminiClient:
    return request.app.state.gemini_client


# ── Repositories ──────────────────────────────────────────────────────────────


def get_user_repository(db: AsyncDatabase = Depends(get_db)) -> UserRepository:
    return UserRepository(db[user_repository.COLLECTION])


def get_car_repository(db: AsyncDatabase = Depends(get_db)) -> CarRepository:
    return CarRepository(db[car_repository.COLLECTION])


def get_password_reset_repository(
    db: AsyncDatabase = Depends(get_db),
) -> PasswordResetRepository:
    return PasswordResetRepository(db[password_reset_repository.COLLECTION])


def get_test_drive_repository(
    db: AsyncDatabase = Depends(get_db),
) -> TestDriveRepository:
    return TestDriveRepository(db[test_drive_repository.COLLECTION])


# ── Services ──────────────────────────────────────────────────────────────────


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenService = Depends(get_token_service),
    google: Optional[GoogleIdTokenVerifier] = Depends(get_google_verifier),
) -> AuthService:
    return AuthService(users, tokens, google)


def get_password_reset_service(
    settings: AppSettings = Depends(get_settings),
    users: UserRepository = Depends(get_user_repository),
    resets: PasswordResetRepository = Depends(get_password_reset_repository),
    email_provider: EmailProvider = Depends(get_email_provider),
) -> PasswordResetService:
    return PasswordResetService(users, resets, email_provider, settings.password_reset)


def get_car_service(cars: CarRepository = Depends(get_car_repository)) -> CarService:
    return CarService(cars)


def get_favorite_service(
    users: UserRepository = Depends(get_user_repository),
    cars: CarRepository = Depends(get_car_repository),
) -> FavoriteService:
    return FavoriteService(users, cars)


def get_booking_service(
    bookings: TestDriveRepository = Depends(get_test_drive_repository),
    cars: CarRepository = Depends(get_car_repository),
    email_provider: EmailProvider = Depends(get_email_provider),
) -> BookingService:
    return BookingService(bookings, cars, email_provider)


def get_user_admin_service(
    users: UserRepository = Depends(get_user_repository),
) -> UserAdminService:
    return UserAdminService(users)


# ── Access control ────────────────────────────────────────────────────────────


def extract_bearer_token(request: Request) -> Optional[str]:
    """Access token from the cookie, falling back to ``Authorization: Bearer``."""
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def _verify_access(request: Request, tokens: TokenService, token: str) -> AccessTokenClaims:
    claims = tokens.verify(token, TOKEN_TYPE_ACCESS)
    request.state.claims = claims
    structlog.contextvars.bind_contextvars(user_id=claims.sub)
    return claims


async def get_access_claims(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
) -> AccessTokenClaims:
    """Require a valid access token.

    Missing, expired and malformed tokens all surface as 403 with no hint
    about which check failed. Declared async so the user_id binding lands in
    the request context rather than a threadpool copy of it.
    """
    token = extract_bearer_token(request)
    if not token:
        raise ForbiddenError("Access denied. No token provided")
    try:
        return _verify_access(request, tokens, token)
    except TokenError as exc:
        log.info("access_token_rejected", reason=type(exc).__name__)
        raise ForbiddenError("Invalid or expired token") from exc


async def get_optional_claims(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
) -> Optional[AccessTokenClaims]:
    """Claims when a valid access token is present, otherwise None."""
    token = extract_bearer_token(request)
    if not token:
        return None
    try:
        return _verify_access(request, tokens, token)
    except TokenError:
        return None


async def require_admin(
    claims: AccessTokenClaims = Depends(get_access_claims),
) -> AccessTokenClaims:
    if claims.role != ROLE_ADMIN:
        raise ForbiddenError("Access denied. Admin role required")
    return claims

"""
Application factory for the 4Wheeler API.

create_app() builds the FastAPI instance; long-lived clients (MongoDB,
outbound HTTP, token signing, Google JWKS) are opened in the lifespan and
parked on app.state for the dependency providers in dependencies.py.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.ai.gemini import GeminiClient
from infrastructure.email.sendgrid import SendGridProvider
from infrastructure.http_client import HttpClient
from infrastructure.oauth.google import GoogleIdTokenVerifier
from middleware.request_logging import RequestLoggingMiddleware
from repositories.indexes import ensure_indexes
from routes import (
    admin_routes,
    auth_routes,
    car_routes,
    compare_routes,
    favorite_routes,
    health_routes,
)
from services.token_service import TokenService
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)

ROUTERS = (
    health_routes.router,
    auth_routes.router,
    car_routes.router,
    favorite_routes.router,
    admin_routes.router,
    compare_routes.router,
)


def _init_sentry(settings: AppSettings) -> None:
    if not settings.sentry.sentry_dsn:
        return
    sentry_sdk.init(
        dsn=settings.sentry.sentry_dsn,
        send_default_pii=settings.sentry.sentry_send_pii,
        traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        environment=settings.env,
    )


def _wire_services(app: FastAPI, settings: AppSettings) -> list[HttpClient]:
    """Attach service singletons to app.state; returns the HTTP clients to close."""
    # Raises on a missing signing key, so a misconfigured deploy never boots
    app.state.token_service = TokenService(settings.jwt)

    http_client = HttpClient()
    gemini_http = HttpClient(timeout=settings.gemini.gemini_timeout_seconds)
    app.state.email_provider = SendGridProvider(
        settings.email, http_client, app_url=settings.app_url
    )
    app.state.google_verifier = GoogleIdTokenVerifier(settings.google)
    app.state.gemini_client = GeminiClient(settings.gemini, gemini_http)
    return [http_client, gemini_http]


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    settings = settings or AppSettings()

    setup_logging(settings.logging.log_level, settings.logging.log_format, settings.env)
    _init_sentry(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        app.state.settings = settings
        app.state.db = mongo_client[settings.db.db_name]
        http_clients = _wire_services(app, settings)

        await ensure_indexes(app.state.db)
        log.info("app_started", env=settings.env, db_name=settings.db.db_name)
        try:
            yield
        finally:
            for client in http_clients:
                await client.aclose()
            await mongo_client.close()
            log.info("app_stopped")

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    # Tokens travel in cookies, so origins must be explicit when credentials are on
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    for router in ROUTERS:
        app.include_router(router)

    return app

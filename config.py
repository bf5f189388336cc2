"""
Settings for the 4Wheeler API, read from the environment and `.env`.

Each concern has its own BaseSettings class so a service can be handed
only what it needs (TokenService gets JWTSettings, the reset flow gets
PasswordResetSettings, ...). AppSettings bundles them and fills any
sub-config that was not passed in explicitly.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class _EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class DatabaseSettings(_EnvSettings):
    mongodb_uri: str
    db_name: str = "4wheeler"


class JWTSettings(_EnvSettings):
    jwt_issuer: str = "4wheeler"
    jwt_audience: str = "4wheeler.api"
    access_token_ttl_seconds: int = 900  # 15 min
    refresh_token_ttl_seconds: int = 604800  # 7 days

    cookie_secure: bool = True
    cookie_samesite: Literal["lax", "strict", "none"] = "strict"

    # RS256 is used when both PEM keys are set
    jwt_private_key: str = ""
    jwt_public_key: str = ""

    # otherwise HS256, with a distinct secret per token kind
    jwt_secret: str = ""
    jwt_refresh_secret: str = ""

    @property
    def use_rs256(self) -> bool:
        return bool(self.jwt_private_key and self.jwt_public_key)


class GoogleAuthSettings(_EnvSettings):
    google_client_id: str = ""
    google_certs_url: str = "https://www.googleapis.com/oauth2/v3/certs"


class EmailSettings(_EnvSettings):
    sendgrid_api_key: str = ""
    email_from: str = "noreply@4wheeler.com"
    email_from_name: str = "4Wheeler"


class PasswordResetSettings(_EnvSettings):
    otp_ttl_seconds: int = 300
    reset_token_ttl_seconds: int = 600
    otp_max_attempts: int = 5
    otp_max_requests_per_hour: int = 3


class GeminiSettings(_EnvSettings):
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_timeout_seconds: float = 30.0
    gemini_max_retries: int = 2


class LoggingSettings(_EnvSettings):
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"


class SentrySettings(_EnvSettings):
    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


_SUB_CONFIGS = {
    "db": DatabaseSettings,
    "jwt": JWTSettings,
    "google": GoogleAuthSettings,
    "email": EmailSettings,
    "password_reset": PasswordResetSettings,
    "gemini": GeminiSettings,
    "logging": LoggingSettings,
    "sentry": SentrySettings,
}


class AppSettings(_EnvSettings):
    env: str = "development"
    app_name: str = "4Wheeler API"
    # Frontend origin, used for CORS and for links in outgoing mail
    app_url: str = "http://localhost:5173"
    cors_origins: list[str] = ["http://localhost:5173"]
    # Set DOCS_URL to an empty value to hide the OpenAPI UI
    docs_url: Optional[str] = "/docs"

    db: Optional[DatabaseSettings] = None
    jwt: Optional[JWTSettings] = None
    google: Optional[GoogleAuthSettings] = None
    email: Optional[EmailSettings] = None
    password_reset: Optional[PasswordResetSettings] = None
    gemini: Optional[GeminiSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        for attr, settings_cls in _SUB_CONFIGS.items():
            if getattr(self, attr) is None:
                setattr(self, attr, settings_cls())
        return self

"""
Account flows: registration, password login, Google sign-in, profile.

Token minting is delegated to TokenService; cookies are set by the route
layer from the AuthResult returned here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationError,
)
from infrastructure.oauth.google import GoogleIdTokenVerifier, GoogleTokenError
from repositories.user_repository import UserRepository
from schemas.models.token import AccessTokenClaims
from schemas.models.user import UserDoc
from services.token_service import TokenService
from shared.crypto import hash_password, verify_password
from shared.datetime_utils import Clock, utc_now
from shared.generators import generate_unusable_password, generate_username
from shared.logging import get_logger
from shared.validators import to_object_id, validate_email, validate_username

log = get_logger(__name__)

# Attempts at picking a free generated username for new Google users
_GOOGLE_USERNAME_ATTEMPTS = 3


@dataclass
class AuthResult:
    user: UserDoc
    access_token: str
    refresh_token: str


def normalise_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        google: Optional[GoogleIdTokenVerifier] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._google = google
        self._clock = clock

    def _issue(self, user: UserDoc) -> AuthResult:
        return AuthResult(
            user=user,
            access_token=self._tokens.issue_access_token(user),
            refresh_token=self._tokens.issue_refresh_token(user),
        )

    async def register(self, username: str, email: str, password: str) -> UserDoc:
        username = username.strip()
        email = normalise_email(email)
        if not validate_email(email):
            raise ValidationError("Invalid email format", field="email")
        if not validate_username(username):
            raise ValidationError(
                "Username must be 3-32 letters, digits, '_', '.' or '-'",
                field="username",
            )

        existing = await self._users.find_conflict(username, email)
        if existing is not None:
            field = "username" if existing.username == username else "email"
            log.info("user_register_conflict", field=field)
            raise ConflictError(f"{field.capitalize()} already exists", field=field)

        now = self._clock()
        user = await self._users.create(
            UserDoc(
                username=username,
                email=email,
                password_hash=hash_password(password),
                created_at=now,
                updated_at=now,
            )
        )
        log.info("user_registered", user_id=str(user.id), auth_provider="password")
        return user

    async def login(self, email: str, password: str) -> AuthResult:
        user = await self._users.find_active_by_email(normalise_email(email))
        if user is None:
            raise NotFoundError("Email not found", field="email")
        if not verify_password(password, user.password_hash):
            log.info("user_login_failed", user_id=str(user.id), reason="bad_password")
            raise AuthenticationError("Email or password is incorrect")

        log.info("user_login", user_id=str(user.id), method="password")
        return self._issue(user)

    async def google_sign_in(self, id_token: Optional[str]) -> AuthResult:
        if self._google is None or not self._google.configured:
            raise ServiceUnavailableError("Google sign-in is not configured")
        if not id_token:
            raise ValidationError("Missing ID token", field="id_token")

        try:
            profile = await self._google.verify(id_token)
        except GoogleTokenError as exc:
            raise AuthenticationError("Invalid or expired ID token") from exc

        user = await self._users.find_active_by_email(profile["email"])
        if user is None:
            user = await self._create_google_user(profile)
        else:
            log.info("user_login", user_id=str(user.id), method="google")
        return self._issue(user)

    async def _create_google_user(self, profile: dict) -> UserDoc:
        display_name = profile.get("name") or profile["email"].split("@", 1)[0]
        password_hash = hash_password(generate_unusable_password())

        for attempt in range(_GOOGLE_USERNAME_ATTEMPTS):
            now = self._clock()
            candidate = UserDoc(
                username=generate_username(display_name),
                email=profile["email"],
                password_hash=password_hash,
                avatar=profile.get("picture") or None,
                auth_provider="google",
                created_at=now,
                updated_at=now,
            )
            try:
                user = await self._users.create(candidate)
            except ConflictError as exc:
                if exc.field != "username" or attempt == _GOOGLE_USERNAME_ATTEMPTS - 1:
                    raise
                continue
            log.info("user_registered", user_id=str(user.id), auth_provider="google")
            return user

        raise ConflictError("Could not allocate a username")  # pragma: no cover

    def refresh_access_token(self, refresh_token: Optional[str]) -> str:
        return self._tokens.refresh(refresh_token)

    async def get_current_user(self, claims: AccessTokenClaims) -> UserDoc:
        user_id = to_object_id(claims.sub)
        user = await self._users.find_by_id(user_id) if user_id else None
        if user is None:
            raise NotFoundError("User not found")
        return user

"""
JWT issuance and verification for access and refresh tokens.

Both token kinds carry the same identity claims (sub, username, email, role)
and are told apart by the ``type`` claim. With RS256 keys configured both
kinds are signed with the private key; otherwise HS256 is used with separate
access and refresh secrets, so a refresh token can never pass as an access
token even if the ``type`` check were skipped.
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Literal, Optional, Union, overload

import jwt

from config import JWTSettings
from errors import AuthenticationError
from schemas.models.token import (
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    AccessTokenClaims,
    RefreshTokenClaims,
)
from schemas.models.user import UserDoc
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger

log = get_logger(__name__)

TokenType = Literal["access", "refresh"]
Claims = Union[AccessTokenClaims, RefreshTokenClaims]

_CLAIM_MODELS = {
    TOKEN_TYPE_ACCESS: AccessTokenClaims,
    TOKEN_TYPE_REFRESH: RefreshTokenClaims,
}


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpiredError(TokenError):
    """The token's signature is valid but its ``exp`` has passed."""


class TokenInvalidError(TokenError):
    """Bad signature, malformed token, wrong issuer/audience or wrong type."""


def _normalise_pem(value: str) -> bytes:
    # Support keys provided via env with literal \n sequences
    return value.replace("\\n", "\n").encode("utf-8")


class TokenService:
    def __init__(self, settings: JWTSettings, clock: Clock = utc_now) -> None:
        self._settings = settings
        self._clock = clock

        if settings.use_rs256:
            self._algorithm = "RS256"
            private_key = _normalise_pem(settings.jwt_private_key)
            public_key = _normalise_pem(settings.jwt_public_key)
            self._signing_keys = {TOKEN_TYPE_ACCESS: private_key, TOKEN_TYPE_REFRESH: private_key}
            self._verify_keys = {TOKEN_TYPE_ACCESS: public_key, TOKEN_TYPE_REFRESH: public_key}
        else:
            if not settings.jwt_secret:
                raise RuntimeError(
                    "JWT_SECRET must be set when RS256 keys are not provided"
                )
            refresh_secret = settings.jwt_refresh_secret or settings.jwt_secret
            self._algorithm = "HS256"
            self._signing_keys = {
                TOKEN_TYPE_ACCESS: settings.jwt_secret,
                TOKEN_TYPE_REFRESH: refresh_secret,
            }
            self._verify_keys = dict(self._signing_keys)

    @property
    def access_ttl_seconds(self) -> int:
        return self._settings.access_token_ttl_seconds

    @property
    def refresh_ttl_seconds(self) -> int:
        return self._settings.refresh_token_ttl_seconds

    def _issue(
        self,
        token_type: TokenType,
        sub: str,
        username: str,
        email: str,
        role: str,
        ttl_seconds: int,
    ) -> str:
        now = self._clock()
        iat = int(now.timestamp())
        claims = {
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "sub": sub,
            "iat": iat,
            "nbf": iat,
            "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
            "jti": str(uuid.uuid4()),
            "username": username,
            "email": email,
            "role": role,
            "type": token_type,
        }
        return jwt.encode(claims, self._signing_keys[token_type], algorithm=self._algorithm)

    def issue_access_token(self, user: UserDoc) -> str:
        return self._issue(
            TOKEN_TYPE_ACCESS,
            str(user.id),
            user.username,
            user.email,
            user.role,
            self.access_ttl_seconds,
        )

    def issue_refresh_token(self, user: UserDoc) -> str:
        return self._issue(
            TOKEN_TYPE_REFRESH,
            str(user.id),
            user.username,
            user.email,
            user.role,
            self.refresh_ttl_seconds,
        )

    @overload
    def verify(self, token: str, expected_type: Literal["access"]) -> AccessTokenClaims: ...

    @overload
    def verify(self, token: str, expected_type: Literal["refresh"]) -> RefreshTokenClaims: ...

    def verify(self, token: str, expected_type: TokenType) -> Claims:
        """Decode *token* and check it is of *expected_type*.

        Raises:
            TokenExpiredError: the token has expired.
            TokenInvalidError: any other verification failure.
        """
        now = self._clock()
        try:
            payload = jwt.decode(
                token,
                self._verify_keys[expected_type],
                algorithms=[self._algorithm],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
                options={
                    "require": ["exp", "iat", "nbf", "sub", "jti"],
                    # exp/nbf are checked below against the injected clock
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as exc:
            raise TokenInvalidError(str(exc)) from exc

        timestamp = int(now.timestamp())
        if payload["exp"] <= timestamp:
            raise TokenExpiredError("Signature has expired")
        if payload["nbf"] > timestamp:
            raise TokenInvalidError("The token is not yet valid (nbf)")
        if payload.get("type") != expected_type:
            raise TokenInvalidError(f"Not a {expected_type} token")

        try:
            return _CLAIM_MODELS[expected_type].model_validate(payload)
        except ValueError as exc:
            raise TokenInvalidError("Malformed token claims") from exc

    def refresh(self, refresh_token: Optional[str]) -> str:
        """Mint a new access token from a refresh token, without a DB lookup.

        Raises:
            AuthenticationError: the refresh token is missing, expired or invalid.
        """
        if not refresh_token:
            raise AuthenticationError("Refresh token missing")
        try:
            claims = self.verify(refresh_token, TOKEN_TYPE_REFRESH)
        except TokenExpiredError as exc:
            log.info("token_refresh_failed", reason="expired")
            raise AuthenticationError("Refresh token expired") from exc
        except TokenInvalidError as exc:
            log.warning("token_refresh_failed", reason="invalid", error=str(exc))
            raise AuthenticationError("Invalid refresh token") from exc

        return self._issue(
            TOKEN_TYPE_ACCESS,
            claims.sub,
            claims.username,
            claims.email,
            claims.role,
            self.access_ttl_seconds,
        )

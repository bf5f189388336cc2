"""Google sign-in: ID-token verification and profile extraction.

The frontend completes the Google popup flow and posts the resulting ID
token. GoogleIdTokenVerifier checks its RS256 signature against Google's
published JWKS (cached by PyJWKClient), the audience (our client id) and the
issuer, then returns the normalised profile.
"""

import asyncio
from typing import Any, Dict, Optional

import jwt

from config import GoogleAuthSettings
from shared.logging import get_logger

log = get_logger(__name__)

GOOGLE_ISSUERS = ("https://accounts.google.com", "accounts.google.com")


class GoogleTokenError(Exception):
    """The ID token could not be verified."""


def extract_user_info_from_google(userinfo: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "provider_user_id": userinfo.get("sub", ""),
        "email": (userinfo.get("email") or "").lower().strip(),
        "email_verified": bool(userinfo.get("email_verified", False)),
        "name": userinfo.get("name", ""),
        "picture": userinfo.get("picture", ""),
        "given_name": userinfo.get("given_name", ""),
        "family_name": userinfo.get("family_name", ""),
    }


class GoogleIdTokenVerifier:
    def __init__(
        self,
        settings: GoogleAuthSettings,
        jwks_client: Optional[jwt.PyJWKClient] = None,
    ) -> None:
        self._settings = settings
        self._jwks = jwks_client or jwt.PyJWKClient(
            settings.google_certs_url, cache_keys=True
        )

    @property
    def configured(self) -> bool:
        return bool(self._settings.google_client_id)

    def _decode(self, id_token: str) -> Dict[str, Any]:
        signing_key = self._jwks.get_signing_key_from_jwt(id_token)
        claims = jwt.decode(
            id_token,
            signing_key.key,
            algorithms=["RS256"],
            audience=self._settings.google_client_id,
            options={"require": ["exp", "iat", "iss", "sub", "aud"]},
        )
        if claims.get("iss") not in GOOGLE_ISSUERS:
            raise jwt.InvalidIssuerError("Unexpected issuer")
        return claims

    async def verify(self, id_token: str) -> Dict[str, Any]:
        """Verify *id_token* and return the extracted Google profile.

        JWKS fetching is blocking I/O, so decoding runs in a worker thread.

        Raises:
            GoogleTokenError: signature, audience, issuer or expiry check failed,
                or the token carries no email.
        """
        try:
            claims = await asyncio.to_thread(self._decode, id_token)
        except (jwt.PyJWKClientError, jwt.InvalidTokenError) as exc:
            log.warning(
                "google_token_rejected", error=str(exc), error_type=type(exc).__name__
            )
            raise GoogleTokenError(str(exc)) from exc

        info = extract_user_info_from_google(claims)
        if not info["email"]:
            raise GoogleTokenError("Google account has no email")
        return info

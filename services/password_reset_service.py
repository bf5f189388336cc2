"""
Password reset via emailed OTP.

    Idle ──request──▶ OtpIssued ──verify──▶ ResetTokenIssued ──reset──▶ Reset

request_reset   emails a 6-digit OTP valid for otp_ttl_seconds; earlier
                unused codes and reset tokens for the same email are expired.
verify_otp      exchanges a live OTP for a 256-bit reset token; only the
                SHA-256 of the token is stored, the plaintext is returned once.
reset_password  consumes the reset token (one use) and stores the new hash.

Expiry is enforced both by the repository query and here against the
service clock, so a stale document can never slip through.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from config import PasswordResetSettings
from errors import (
    AuthenticationError,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from infrastructure.email.protocol import EmailProvider
from repositories.password_reset_repository import PasswordResetRepository
from repositories.user_repository import UserRepository
from schemas.models.token import PasswordResetDoc
from services.auth_service import normalise_email
from shared.crypto import hash_password, hash_token, verify_password
from shared.datetime_utils import Clock, is_expired, utc_now
from shared.generators import generate_otp_code, generate_reset_token
from shared.logging import get_logger
from shared.validators import validate_email

log = get_logger(__name__)

OTP_LENGTH = 6
RATE_LIMIT_WINDOW = timedelta(hours=1)


@dataclass
class IssuedResetToken:
    reset_token: str
    expires_in: int


class PasswordResetService:
    def __init__(
        self,
        users: UserRepository,
        resets: PasswordResetRepository,
        email_provider: EmailProvider,
        settings: PasswordResetSettings,
        clock: Clock = utc_now,
    ) -> None:
        self._users = users
        self._resets = resets
        self._email = email_provider
        self._settings = settings
        self._clock = clock

    async def request_reset(self, email: str) -> None:
        """Issue and email an OTP for an active account.

        Raises:
            ValidationError: malformed or missing email.
            NotFoundError: no active user has this email; nothing is sent.
            RateLimitError: too many requests for this email in the last hour.
            ExternalServiceError: the mail provider refused the message.
        """
        email = normalise_email(email)
        if not validate_email(email):
            raise ValidationError("Invalid or missing email format", field="email")

        user = await self._users.find_active_by_email(email)
        if user is None:
            log.info("password_reset_requested", outcome="unknown_email")
            raise NotFoundError("Email not found", field="email")

        now = self._clock()
        recent = await self._resets.count_recent(email, now - RATE_LIMIT_WINDOW)
        if recent >= self._settings.otp_max_requests_per_hour:
            log.warning(
                "password_reset_rate_limited", user_id=str(user.id), count=recent
            )
            raise RateLimitError(
                "Too many password reset attempts. Please try again later."
            )

        await self._resets.invalidate_pending(email, now)

        otp_code = generate_otp_code(OTP_LENGTH)
        record = await self._resets.create(
            PasswordResetDoc(
                email=email,
                otp_hash=hash_token(otp_code),
                expire_at=now + timedelta(seconds=self._settings.otp_ttl_seconds),
                created_at=now,
            )
        )
        log.info(
            "password_reset_otp_issued",
            user_id=str(user.id),
            record_id=str(record.id),
        )

        sent = await self._email.send_password_reset_otp(
            email,
            user.username,
            otp_code,
            ttl_minutes=self._settings.otp_ttl_seconds // 60,
        )
        if not sent:
            raise ExternalServiceError("Failed to send OTP email")

    async def verify_otp(self, email: str, otp: str) -> IssuedResetToken:
        """Exchange a valid OTP for a one-time reset token.

        Raises:
            AuthenticationError: no live record matches (wrong, expired,
                already exchanged, or too many failed attempts).
        """
        email = normalise_email(email)
        now = self._clock()
        otp = (otp or "").strip()

        record = None
        if len(otp) == OTP_LENGTH and otp.isdigit():
            record = await self._resets.find_live_otp(
                email, hash_token(otp), now, self._settings.otp_max_attempts
            )

        if record is None or is_expired(record.expire_at, now):
            await self._resets.record_failed_attempt(email, now)
            log.info("password_reset_otp_rejected")
            raise AuthenticationError("Invalid or expired OTP code")

        reset_token = generate_reset_token()
        expires = now + timedelta(seconds=self._settings.reset_token_ttl_seconds)
        if not await self._resets.issue_reset_token(
            record.id, hash_token(reset_token), expires
        ):
            # Lost a race with a concurrent verification of the same OTP
            raise AuthenticationError("Invalid or expired OTP code")

        log.info("password_reset_otp_verified", record_id=str(record.id))
        return IssuedResetToken(
            reset_token=reset_token,
            expires_in=self._settings.reset_token_ttl_seconds,
        )

    async def reset_password(self, reset_token: str, new_password: str) -> None:
        """Set a new password using a reset token from verify_otp.

        Raises:
            AuthenticationError: unknown, expired or already-used token.
            NotFoundError: the account disappeared in the meantime.
            ValidationError: the new password equals the current one.
        """
        now = self._clock()
        record = None
        if reset_token:
            record = await self._resets.find_by_reset_token(hash_token(reset_token), now)
        if (
            record is None
            or record.used_at is not None
            or is_expired(record.reset_token_expires, now)
        ):
            log.info("password_reset_rejected", reason="invalid_reset_token")
            raise AuthenticationError("Invalid or expired reset token")

        user = await self._users.find_active_by_email(record.email)
        if user is None:
            raise NotFoundError("User not found")

        if verify_password(new_password, user.password_hash):
            raise ValidationError(
                "New password must be different from the current password",
                field="new_password",
            )

        if not await self._resets.mark_used(record.id, now):
            raise AuthenticationError("Invalid or expired reset token")
        await self._users.update_password(user.id, hash_password(new_password), now)
        log.info("password_reset_completed", user_id=str(user.id))

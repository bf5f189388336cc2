"""
Unit tests for PasswordResetService.

The repository is replaced by an in-memory fake that mirrors the filters the
real queries use, so the OTP → reset token → used transitions can be driven
end to end against a frozen clock.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from errors import (
    AuthenticationError,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from services.password_reset_service import PasswordResetService
from shared.crypto import hash_password, hash_token, verify_password
from shared.datetime_utils import ensure_utc, is_expired


class InMemoryResets:
    def __init__(self):
        self.records = []

    async def count_recent(self, email, since):
        return sum(1 for r in self.records if r.email == email and r.created_at >= since)

    async def invalidate_pending(self, email, now):
        count = 0
        for r in self.records:
            if r.email == email and r.used_at is None:
                r.expire_at = now
                r.reset_token_expires = now
                count += 1
        return count

    async def create(self, record):
        record = record.model_copy(update={"id": ObjectId()})
        self.records.append(record)
        return record

    async def find_live_otp(self, email, otp_hash, now, max_attempts):
        live = [
            r
            for r in self.records
            if r.email == email
            and r.otp_hash == otp_hash
            and ensure_utc(r.expire_at) > now
            and r.reset_token_hash is None
            and r.attempts < max_attempts
        ]
        return live[-1] if live else None

    async def record_failed_attempt(self, email, now):
        for r in self.records:
            if r.email == email and ensure_utc(r.expire_at) > now and r.reset_token_hash is None:
                r.attempts += 1

    async def issue_reset_token(self, record_id, reset_token_hash, expires):
        for r in self.records:
            if r.id == record_id and r.reset_token_hash is None:
                r.reset_token_hash = reset_token_hash
                r.reset_token_expires = expires
                return True
        return False

    async def find_by_reset_token(self, reset_token_hash, now):
        for r in self.records:
            if (
                r.reset_token_hash == reset_token_hash
                and ensure_utc(r.reset_token_expires) > now
                and r.used_at is None
            ):
                return r
        return None

    async def mark_used(self, record_id, now):
        for r in self.records:
            if r.id == record_id and r.used_at is None:
                r.used_at = now
                return True
        return False


@pytest.fixture
def account(user_factory):
    return user_factory(email="alice@example.com", password_hash=hash_password("oldpass1"))


@pytest.fixture
def users(account):
    repo = AsyncMock()
    repo.find_active_by_email.side_effect = (
        lambda email: account if email == account.email else None
    )
    repo.update_password.return_value = True
    return repo


@pytest.fixture
def resets():
    return InMemoryResets()


@pytest.fixture
def mailer():
    provider = AsyncMock()
    provider.send_password_reset_otp.return_value = True
    return provider


@pytest.fixture
def service(users, resets, mailer, reset_settings, clock):
    return PasswordResetService(users, resets, mailer, reset_settings, clock=clock)


def sent_otp(mailer) -> str:
    return mailer.send_password_reset_otp.call_args.args[2]


# ── request_reset ─────────────────────────────────────────────────────────────


class TestRequestReset:
    async def test_stores_only_the_hash(self, service, resets, mailer, clock):
        await service.request_reset("Alice@Example.com")

        otp = sent_otp(mailer)
        assert len(otp) == 6 and otp.isdigit()
        (record,) = resets.records
        assert record.otp_hash == hash_token(otp)
        assert record.expire_at == clock() + timedelta(seconds=300)
        assert mailer.send_password_reset_otp.call_args.kwargs["ttl_minutes"] == 5

    @pytest.mark.parametrize("email", ["", "nope"])
    async def test_invalid_email(self, service, mailer, email):
        with pytest.raises(ValidationError):
            await service.request_reset(email)
        mailer.send_password_reset_otp.assert_not_called()

    async def test_unknown_email_sends_nothing(self, service, mailer):
        with pytest.raises(NotFoundError):
            await service.request_reset("ghost@example.com")
        mailer.send_password_reset_otp.assert_not_called()

    async def test_new_request_expires_pending_otp(self, service, resets, mailer, clock):
        await service.request_reset("alice@example.com")
        await service.request_reset("alice@example.com")
        latest = sent_otp(mailer)

        first, second = resets.records
        assert is_expired(first.expire_at, clock())
        assert second.otp_hash == hash_token(latest)
        assert (await service.verify_otp("alice@example.com", latest)).reset_token

    async def test_new_request_revokes_issued_reset_token(self, service, mailer):
        await service.request_reset("alice@example.com")
        issued = await service.verify_otp("alice@example.com", sent_otp(mailer))
        await service.request_reset("alice@example.com")
        with pytest.raises(AuthenticationError):
            await service.reset_password(issued.reset_token, "newpass1")

    async def test_rate_limited_after_three_per_hour(self, service, clock):
        for _ in range(3):
            await service.request_reset("alice@example.com")
            clock.advance(minutes=1)
        with pytest.raises(RateLimitError):
            await service.request_reset("alice@example.com")

    async def test_rate_limit_window_slides(self, service, clock):
        for _ in range(3):
            await service.request_reset("alice@example.com")
        clock.advance(hours=1, seconds=1)
        await service.request_reset("alice@example.com")

    async def test_mail_failure_surfaces(self, service, mailer):
        mailer.send_password_reset_otp.return_value = False
        with pytest.raises(ExternalServiceError):
            await service.request_reset("alice@example.com")


# ── verify_otp ────────────────────────────────────────────────────────────────


class TestVerifyOtp:
    async def test_issues_reset_token(self, service, resets, mailer):
        await service.request_reset("alice@example.com")

        issued = await service.verify_otp("alice@example.com", sent_otp(mailer))

        assert len(issued.reset_token) == 64
        assert issued.expires_in == 600
        assert resets.records[0].reset_token_hash == hash_token(issued.reset_token)

    async def test_wrong_code(self, service, resets, mailer):
        await service.request_reset("alice@example.com")
        wrong = "000000" if sent_otp(mailer) != "000000" else "111111"
        with pytest.raises(AuthenticationError):
            await service.verify_otp("alice@example.com", wrong)
        assert resets.records[0].attempts == 1

    async def test_expired_code_rejected(self, service, mailer, clock):
        await service.request_reset("alice@example.com")
        clock.advance(seconds=301)
        with pytest.raises(AuthenticationError):
            await service.verify_otp("alice@example.com", sent_otp(mailer))

    async def test_expired_record_returned_by_store_still_rejected(
        self, service, resets, mailer, clock
    ):
        # A store that ignores expiry must not let a stale OTP through
        await service.request_reset("alice@example.com")
        otp = sent_otp(mailer)
        stale = resets.records[0]
        resets.find_live_otp = AsyncMock(return_value=stale)
        clock.advance(minutes=10)
        with pytest.raises(AuthenticationError):
            await service.verify_otp("alice@example.com", otp)

    async def test_code_is_single_exchange(self, service, mailer):
        await service.request_reset("alice@example.com")
        otp = sent_otp(mailer)
        await service.verify_otp("alice@example.com", otp)
        with pytest.raises(AuthenticationError):
            await service.verify_otp("alice@example.com", otp)

    async def test_locked_after_max_attempts(self, service, mailer):
        await service.request_reset("alice@example.com")
        otp = sent_otp(mailer)
        wrong = "000000" if otp != "000000" else "111111"
        for _ in range(5):
            with pytest.raises(AuthenticationError):
                await service.verify_otp("alice@example.com", wrong)
        with pytest.raises(AuthenticationError):
            await service.verify_otp("alice@example.com", otp)

    @pytest.mark.parametrize("otp", ["", "12345", "abcdef", "1234567"])
    async def test_malformed_code(self, service, otp):
        with pytest.raises(AuthenticationError):
            await service.verify_otp("alice@example.com", otp)


# ── reset_password ────────────────────────────────────────────────────────────


async def _reset_token(service, mailer) -> str:
    await service.request_reset("alice@example.com")
    issued = await service.verify_otp("alice@example.com", sent_otp(mailer))
    return issued.reset_token


class TestResetPassword:
    async def test_updates_hash(self, service, users, mailer, account, clock):
        token = await _reset_token(service, mailer)

        await service.reset_password(token, "newpass1")

        user_id, new_hash, now = users.update_password.call_args.args
        assert user_id == account.id
        assert verify_password("newpass1", new_hash)
        assert now == clock()

    async def test_token_is_single_use(self, service, users, mailer):
        token = await _reset_token(service, mailer)
        await service.reset_password(token, "newpass1")
        with pytest.raises(AuthenticationError):
            await service.reset_password(token, "another1")
        assert users.update_password.await_count == 1

    async def test_expired_token(self, service, mailer, clock):
        token = await _reset_token(service, mailer)
        clock.advance(seconds=601)
        with pytest.raises(AuthenticationError):
            await service.reset_password(token, "newpass1")

    async def test_unknown_token(self, service):
        with pytest.raises(AuthenticationError):
            await service.reset_password("f" * 64, "newpass1")

    async def test_same_password_rejected(self, service, users, mailer):
        token = await _reset_token(service, mailer)
        with pytest.raises(ValidationError):
            await service.reset_password(token, "oldpass1")
        users.update_password.assert_not_called()

    async def test_account_deleted_meanwhile(self, service, users, mailer):
        token = await _reset_token(service, mailer)
        users.find_active_by_email.side_effect = None
        users.find_active_by_email.return_value = None
        with pytest.raises(NotFoundError):
            await service.reset_password(token, "newpass1")

"""Integration tests for /api/auth endpoints."""

from datetime import datetime, timedelta, timezone

import structlog
from bson import ObjectId

from errors import ConflictError
from infrastructure.oauth.google import GoogleTokenError
from schemas.models.token import PasswordResetDoc
from shared.crypto import hash_token


# ── register ──────────────────────────────────────────────────────────────────


class TestRegister:
    def test_created(self, client, user_repo):
        resp = client.post(
            "/api/auth/users/register",
            json={"username": "alice", "email": "alice@example.com", "password": "secret1"},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "User created successfully"
        assert body["user"]["username"] == "alice"
        assert body["user"]["role"] == "user"
        assert "password_hash" not in body["user"]

    def test_duplicate_email(self, client, user_repo):
        user_repo.create.side_effect = ConflictError("Email already exists", field="email")
        resp = client.post(
            "/api/auth/users/register",
            json={"username": "alice", "email": "alice@example.com", "password": "secret1"},
        )
        assert resp.status_code == 409
        assert resp.json()["field"] == "email"

    def test_short_password(self, client):
        resp = client.post(
            "/api/auth/users/register",
            json={"username": "alice", "email": "alice@example.com", "password": "123"},
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"
        assert resp.json()["field"] == "password"


# ── login / me / logout ───────────────────────────────────────────────────────


class TestLogin:
    def test_sets_http_only_cookies(self, client, user_repo, member):
        user_repo.find_active_by_email.return_value = member

        resp = client.post(
            "/api/auth/users/login",
            json={"email": "alice@example.com", "password": "secret1"},
        )

        assert resp.status_code == 200
        assert resp.json()["email"] == "alice@example.com"
        set_cookies = resp.headers.get_list("set-cookie")
        access = next(c for c in set_cookies if c.startswith("access_token="))
        refresh = next(c for c in set_cookies if c.startswith("refresh_token="))
        assert "HttpOnly" in access and "HttpOnly" in refresh
        assert "Max-Age=900" in access
        assert "Max-Age=604800" in refresh
        assert "SameSite=strict" in access

    def test_cookie_then_me(self, client, user_repo, member):
        user_repo.find_active_by_email.return_value = member
        user_repo.find_by_id.return_value = member
        client.post(
            "/api/auth/users/login",
            json={"email": "alice@example.com", "password": "secret1"},
        )

        resp = client.get("/api/auth/users/me")

        assert resp.status_code == 200
        assert resp.json()["id"] == str(member.id)

    def test_unknown_email(self, client):
        resp = client.post(
            "/api/auth/users/login",
            json={"email": "ghost@example.com", "password": "secret1"},
        )
        assert resp.status_code == 404

    def test_wrong_password(self, client, user_repo, member):
        user_repo.find_active_by_email.return_value = member
        resp = client.post(
            "/api/auth/users/login",
            json={"email": "alice@example.com", "password": "nope-nope"},
        )
        assert resp.status_code == 401
        assert "set-cookie" not in resp.headers


class TestMe:
    def test_bearer_header(self, client, user_repo, member, auth_header):
        user_repo.find_by_id.return_value = member
        resp = client.get("/api/auth/users/me", headers=auth_header(member))
        assert resp.status_code == 200
        assert resp.json()["username"] == "alice"

    def test_user_id_bound_for_downstream_logging(
        self, client, user_repo, member, auth_header
    ):
        seen = {}

        async def find_by_id(user_id):
            seen.update(structlog.contextvars.get_contextvars())
            return member

        user_repo.find_by_id.side_effect = find_by_id
        resp = client.get("/api/auth/users/me", headers=auth_header(member))

        assert resp.status_code == 200
        assert seen["user_id"] == str(member.id)
        assert seen["request_id"].startswith("req_")

    def test_no_token(self, client):
        resp = client.get("/api/auth/users/me")
        assert resp.status_code == 403
        assert resp.json()["code"] == "forbidden"

    def test_garbage_token(self, client):
        resp = client.get(
            "/api/auth/users/me", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert resp.status_code == 403

    def test_refresh_token_cannot_act_as_access(self, client, token_service, member):
        refresh = token_service.issue_refresh_token(member)
        resp = client.get(
            "/api/auth/users/me", headers={"Authorization": f"Bearer {refresh}"}
        )
        assert resp.status_code == 403


def test_logout_clears_cookies(client):
    resp = client.post("/api/auth/users/logout")
    assert resp.status_code == 200
    set_cookies = resp.headers.get_list("set-cookie")
    assert any(c.startswith("access_token=") and "Max-Age=0" in c for c in set_cookies)
    assert any(c.startswith("refresh_token=") and "Max-Age=0" in c for c in set_cookies)


# ── refresh ───────────────────────────────────────────────────────────────────


class TestRefresh:
    def test_body_token(self, client, token_service, member):
        resp = client.post(
            "/api/auth/users/refresh-token",
            json={"refreshToken": token_service.issue_refresh_token(member)},
        )
        assert resp.status_code == 200
        access = resp.json()["access_token"]
        assert token_service.verify(access, "access").sub == str(member.id)
        assert any(
            c.startswith("access_token=") for c in resp.headers.get_list("set-cookie")
        )

    def test_cookie_token(self, client, token_service, member):
        client.cookies.set("refresh_token", token_service.issue_refresh_token(member))
        resp = client.post("/api/auth/users/refresh-token")
        assert resp.status_code == 200

    def test_missing(self, client):
        resp = client.post("/api/auth/users/refresh-token")
        assert resp.status_code == 401

    def test_access_token_rejected(self, client, token_service, member):
        resp = client.post(
            "/api/auth/users/refresh-token",
            json={"refresh_token": token_service.issue_access_token(member)},
        )
        assert resp.status_code == 401


# ── Google ────────────────────────────────────────────────────────────────────


class TestGoogle:
    def test_new_user_signed_in(self, client, google_verifier, user_repo):
        google_verifier.verify.return_value = {
            "email": "gina@gmail.com",
            "name": "Gina",
            "picture": "",
        }
        resp = client.post("/api/auth/google", json={"idToken": "google-id-token"})
        assert resp.status_code == 200
        assert resp.json()["auth_provider"] == "google"
        assert any(
            c.startswith("refresh_token=") for c in resp.headers.get_list("set-cookie")
        )

    def test_invalid_token(self, client, google_verifier):
        google_verifier.verify.side_effect = GoogleTokenError("bad")
        resp = client.post("/api/auth/google", json={"idToken": "x"})
        assert resp.status_code == 401

    def test_missing_token(self, client):
        resp = client.post("/api/auth/google", json={})
        assert resp.status_code == 400


# ── password reset ────────────────────────────────────────────────────────────


class TestPasswordReset:
    def test_forgot_password_sends_otp(self, client, user_repo, member, email_provider):
        user_repo.find_active_by_email.return_value = member
        resp = client.post(
            "/api/auth/users/forgot-password", json={"email": "alice@example.com"}
        )
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        email_provider.send_password_reset_otp.assert_awaited_once()

    def test_forgot_password_unknown_email(self, client, email_provider):
        resp = client.post(
            "/api/auth/users/forgot-password", json={"email": "ghost@example.com"}
        )
        assert resp.status_code == 404
        email_provider.send_password_reset_otp.assert_not_called()

    def test_forgot_password_missing_email(self, client):
        resp = client.post("/api/auth/users/forgot-password", json={})
        assert resp.status_code == 400

    def test_forgot_password_rate_limited(self, client, user_repo, reset_repo, member):
        user_repo.find_active_by_email.return_value = member
        reset_repo.count_recent.return_value = 3
        resp = client.post(
            "/api/auth/users/forgot-password", json={"email": "alice@example.com"}
        )
        assert resp.status_code == 429

    def test_otp_exchange(self, client, reset_repo):
        reset_repo.find_live_otp.return_value = PasswordResetDoc(
            id=ObjectId(),
            email="alice@example.com",
            otp_hash=hash_token("123456"),
            expire_at=datetime.now(timezone.utc) + timedelta(minutes=4),
        )
        reset_repo.issue_reset_token.return_value = True

        resp = client.post(
            "/api/auth/users/otp-password",
            json={"email": "alice@example.com", "otp": "123456"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert len(body["reset_token"]) == 64
        assert body["expires_in"] == 600
        _, stored_hash, _ = reset_repo.issue_reset_token.call_args.args
        assert stored_hash == hash_token(body["reset_token"])

    def test_wrong_otp(self, client, reset_repo):
        resp = client.post(
            "/api/auth/users/otp-password",
            json={"email": "alice@example.com", "otp": "000000"},
        )
        assert resp.status_code == 401
        reset_repo.record_failed_attempt.assert_awaited_once()

    def test_reset_password(self, client, reset_repo, user_repo, member):
        reset_repo.find_by_reset_token.return_value = PasswordResetDoc(
            id=ObjectId(),
            email=member.email,
            otp_hash="x",
            expire_at=datetime.now(timezone.utc),
            reset_token_hash=hash_token("t" * 64),
            reset_token_expires=datetime.now(timezone.utc) + timedelta(minutes=9),
        )
        reset_repo.mark_used.return_value = True
        user_repo.find_active_by_email.return_value = member

        resp = client.post(
            "/api/auth/users/reset-password",
            json={"resetToken": "t" * 64, "newPassword": "brandnew1"},
        )

        assert resp.status_code == 200
        user_repo.update_password.assert_awaited_once()

    def test_reset_password_invalid_token(self, client):
        resp = client.post(
            "/api/auth/users/reset-password",
            json={"resetToken": "nope", "newPassword": "brandnew1"},
        )
        assert resp.status_code == 401

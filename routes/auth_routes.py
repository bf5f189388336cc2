"""
Authentication endpoints under /api/auth.

Successful sign-ins set httpOnly ``access_token`` and ``refresh_token``
cookies; cookie ``secure`` and ``samesite`` flags come from JWTSettings.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, Response, status

from config import AppSettings, JWTSettings
from dependencies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    get_access_claims,
    get_auth_service,
    get_password_reset_service,
    get_settings,
)
from schemas.dto.requests.auth import (
    ForgotPasswordRequest,
    GoogleSignInRequest,
    LoginRequest,
    OtpPasswordRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from schemas.dto.responses.auth import (
    RefreshResponse,
    RegisterResponse,
    ResetTokenResponse,
    UserProfileResponse,
)
from schemas.dto.responses.common import MessageResponse
from schemas.models.token import AccessTokenClaims
from services.auth_service import AuthResult, AuthService
from services.password_reset_service import PasswordResetService

router = APIRouter(prefix="/api/auth", tags=["auth"])


def set_access_cookie(response: Response, token: str, jwt: JWTSettings) -> None:
    response.set_cookie(
        ACCESS_COOKIE,
        value=token,
        httponly=True,
        secure=jwt.cookie_secure,
        samesite=jwt.cookie_samesite,
        path="/",
        max_age=jwt.access_token_ttl_seconds,
    )


def set_refresh_cookie(response: Response, token: str, jwt: JWTSettings) -> None:
    response.set_cookie(
        REFRESH_COOKIE,
        value=token,
        httponly=True,
        secure=jwt.cookie_secure,
        samesite=jwt.cookie_samesite,
        path="/",
        max_age=jwt.refresh_token_ttl_seconds,
    )


def clear_auth_cookies(response: Response, jwt: JWTSettings) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            name,
            path="/",
            httponly=True,
            secure=jwt.cookie_secure,
            samesite=jwt.cookie_samesite,
        )


def _signed_in(response: Response, result: AuthResult, jwt: JWTSettings) -> UserProfileResponse:
    set_access_cookie(response, result.access_token, jwt)
    set_refresh_cookie(response, result.refresh_token, jwt)
    return UserProfileResponse.from_doc(result.user)


@router.post(
    "/users/register",
    status_code=status.HTTP_201_CREATED,
    response_model=RegisterResponse,
)
async def register(
    payload: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    user = await auth.register(payload.username, payload.email, payload.password)
    return RegisterResponse(
        message="User created successfully",
        user=UserProfileResponse.from_doc(user),
    )


@router.post("/users/login", response_model=UserProfileResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> UserProfileResponse:
    result = await auth.login(payload.email, payload.password)
    return _signed_in(response, result, settings.jwt)


@router.post("/google", response_model=UserProfileResponse)
async def google_sign_in(
    payload: GoogleSignInRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> UserProfileResponse:
    result = await auth.google_sign_in(payload.id_token)
    return _signed_in(response, result, settings.jwt)


@router.post("/users/refresh-token", response_model=RefreshResponse)
async def refresh_token(
    request: Request,
    response: Response,
    payload: Optional[RefreshTokenRequest] = Body(default=None),
    auth: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> RefreshResponse:
    token = request.cookies.get(REFRESH_COOKIE) or (payload.refresh_token if payload else None)
    access_token = auth.refresh_access_token(token)
    set_access_cookie(response, access_token, settings.jwt)
    return RefreshResponse(access_token=access_token)


@router.post("/users/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    settings: AppSettings = Depends(get_settings),
) -> MessageResponse:
    clear_auth_cookies(response, settings.jwt)
    return MessageResponse(success=True, message="Logged out")


@router.get("/users/me", response_model=UserProfileResponse)
async def me(
    claims: AccessTokenClaims = Depends(get_access_claims),
    auth: AuthService = Depends(get_auth_service),
) -> UserProfileResponse:
    user = await auth.get_current_user(claims)
    return UserProfileResponse.from_doc(user)


@router.post("/users/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    resets: PasswordResetService = Depends(get_password_reset_service),
) -> MessageResponse:
    await resets.request_reset(payload.email or "")
    return MessageResponse(success=True, message="OTP code sent via email")


@router.post("/users/otp-password", response_model=ResetTokenResponse)
async def otp_password(
    payload: OtpPasswordRequest,
    resets: PasswordResetService = Depends(get_password_reset_service),
) -> ResetTokenResponse:
    issued = await resets.verify_otp(payload.email, payload.otp)
    return ResetTokenResponse(
        message="OTP verified successfully",
        reset_token=issued.reset_token,
        expires_in=issued.expires_in,
    )


@router.post("/users/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    resets: PasswordResetService = Depends(get_password_reset_service),
) -> MessageResponse:
    await resets.reset_password(payload.reset_token, payload.new_password)
    return MessageResponse(success=True, message="Password reset successfully")

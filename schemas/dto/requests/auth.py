"""
Request DTOs for authentication endpoints.

RegisterRequest         — POST /api/auth/users/register
LoginRequest            — POST /api/auth/users/login
RefreshTokenRequest     — POST /api/auth/users/refresh-token  (body optional)
GoogleSignInRequest     — POST /api/auth/google
ForgotPasswordRequest   — POST /api/auth/users/forgot-password
OtpPasswordRequest      — POST /api/auth/users/otp-password
ResetPasswordRequest    — POST /api/auth/users/reset-password
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

PASSWORD_MIN_LENGTH = 6


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/users/register."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/users/login."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str


class RefreshTokenRequest(BaseModel):
    """Optional body for POST /api/auth/users/refresh-token.

    Browsers send the refresh token as a cookie; other clients may post it.
    """

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("refresh_token", "refreshToken")
    )


class GoogleSignInRequest(BaseModel):
    """Request body for POST /api/auth/google.

    ``id_token`` is the Google-issued ID token obtained by the frontend.
    """

    model_config = ConfigDict(populate_by_name=True)

    id_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("id_token", "idToken")
    )


class ForgotPasswordRequest(BaseModel):
    """Request body for POST /api/auth/users/forgot-password."""

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None


class OtpPasswordRequest(BaseModel):
    """Request body for POST /api/auth/users/otp-password."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    otp: str


class ResetPasswordRequest(BaseModel):
    """Request body for POST /api/auth/users/reset-password."""

    model_config = ConfigDict(populate_by_name=True)

    reset_token: str = Field(
        validation_alias=AliasChoices("reset_token", "resetToken")
    )
    new_password: str = Field(
        min_length=PASSWORD_MIN_LENGTH,
        validation_alias=AliasChoices("new_password", "newPassword"),
    )

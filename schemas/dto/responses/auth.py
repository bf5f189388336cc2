"""
Response DTOs for authentication endpoints.

UserProfileResponse — public user shape (never includes the password hash)
RegisterResponse    — POST /api/auth/users/register  (201)
RefreshResponse     — POST /api/auth/users/refresh-token  (200)
ResetTokenResponse  — POST /api/auth/users/otp-password  (200)
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.user import UserDoc


class UserProfileResponse(BaseModel):
    """User profile returned by login, register, Google sign-in and /me."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    email: str
    role: str
    status: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    auth_provider: str
    favorites: list[str] = []
    deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, user: UserDoc) -> "UserProfileResponse":
        return cls(
            id=str(user.id),
            username=user.username,
            email=user.email,
            role=user.role,
            status=user.status,
            phone=user.phone,
            avatar=user.avatar,
            auth_provider=user.auth_provider,
            favorites=[str(car_id) for car_id in user.favorites],
            deleted=user.deleted,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class RegisterResponse(BaseModel):
    """Response body for POST /api/auth/users/register (201)."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    user: UserProfileResponse


class RefreshResponse(BaseModel):
    """Response body for POST /api/auth/users/refresh-token (200)."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str


class ResetTokenResponse(BaseModel):
    """Response body for POST /api/auth/users/otp-password (200).

    ``reset_token`` is shown exactly once; only its hash is stored.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str
    reset_token: str
    expires_in: int

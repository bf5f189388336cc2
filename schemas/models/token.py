"""
Password-reset document model and JWT claim records.

PasswordResetDoc maps to the `password-resets` MongoDB collection.
otp_hash stores SHA-256(otp_code) and reset_token_hash stores
SHA-256(reset_token) — neither plaintext is ever stored. reset_token_hash is
None until the OTP has been exchanged; used_at is None until the password has
been reset with it.

AccessTokenClaims / RefreshTokenClaims are the decoded shapes of the two JWT
kinds issued by TokenService.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.base import MongoBaseModel
from schemas.models.user import Role

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


class PasswordResetDoc(MongoBaseModel):
    """Document model for the `password-resets` collection."""

    email: str
    otp_hash: str
    expire_at: datetime
    attempts: int = Field(default=0, ge=0)
    reset_token_hash: Optional[str] = None
    reset_token_expires: Optional[datetime] = None
    used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class _TokenClaims(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sub: str
    username: str
    email: str
    role: Role = "user"
    iat: int
    nbf: int
    exp: int
    jti: str
    iss: Optional[str] = None
    aud: Optional[str] = None


class AccessTokenClaims(_TokenClaims):
    type: Literal["access"] = TOKEN_TYPE_ACCESS


class RefreshTokenClaims(_TokenClaims):
    type: Literal["refresh"] = TOKEN_TYPE_REFRESH

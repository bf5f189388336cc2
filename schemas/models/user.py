"""
User document model.

Maps to the `users` MongoDB collection.

Two creation paths produce slightly different shapes:
- Password registration: auth_provider "password", avatar is None
- Google sign-in: auth_provider "google", avatar is the Google picture and the
  password hash belongs to a random password the user never sees

Users are never removed; deleted/deleted_at mark a soft delete.
"""

from __future__ import annotations

from typing import Literal, Optional

from schemas.models.base import (
    MongoBaseModel,
    PyObjectId,
    SoftDeleteFields,
    TimestampFields,
)

ROLE_USER = "user"
ROLE_ADMIN = "admin"

Role = Literal["user", "admin"]


class UserDoc(MongoBaseModel, SoftDeleteFields, TimestampFields):
    """
    Document model for the `users` collection.

    status values: ACTIVE (only value currently in use)
    favorites: car ids with set semantics (maintained via $addToSet / $pull)
    """

    username: str
    email: str
    password_hash: str
    role: Role = ROLE_USER
    status: str = "ACTIVE"
    phone: Optional[str] = None
    avatar: Optional[str] = None
    auth_provider: str = "password"
    favorites: list[PyObjectId] = []

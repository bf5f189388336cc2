"""Repository for the `users` collection."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from errors import ConflictError
from schemas.models.user import UserDoc
from shared.logging import get_logger

log = get_logger(__name__)

COLLECTION = "users"

ACTIVE = {"deleted": False}


def duplicate_key_field(exc: DuplicateKeyError) -> Optional[str]:
    """Name of the field that violated a unique index, when the server says."""
    details = exc.details or {}
    key_pattern = details.get("keyPattern") or details.get("keyValue") or {}
    return next(iter(key_pattern), None)


class UserRepository:
    """Async access to user documents. Soft-deleted users are hidden unless asked for."""

    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def find_by_id(
        self, user_id: ObjectId, include_deleted: bool = False
    ) -> Optional[UserDoc]:
        query: dict = {"_id": user_id}
        if not include_deleted:
            query.update(ACTIVE)
        return UserDoc.from_mongo(await self._col.find_one(query))

    async def find_active_by_email(self, email: str) -> Optional[UserDoc]:
        return UserDoc.from_mongo(await self._col.find_one({"email": email, **ACTIVE}))

    async def find_conflict(self, username: str, email: str) -> Optional[UserDoc]:
        """Return an active user that already holds *username* or *email*."""
        doc = await self._col.find_one(
            {"$or": [{"username": username}, {"email": email}], **ACTIVE}
        )
        return UserDoc.from_mongo(doc)

    async def create(self, user: UserDoc) -> UserDoc:
        try:
            result = await self._col.insert_one(user.to_mongo())
        except DuplicateKeyError as exc:
            field = duplicate_key_field(exc)
            log.info("user_create_conflict", field=field)
            raise ConflictError(
                f"{(field or 'Email or username').capitalize()} already exists",
                field=field,
            ) from exc
        return user.model_copy(update={"id": result.inserted_id})

    async def update_password(
        self, user_id: ObjectId, password_hash: str, now: datetime
    ) -> bool:
        result = await self._col.update_one(
            {"_id": user_id, **ACTIVE},
            {"$set": {"password_hash": password_hash, "updated_at": now}},
        )
        return result.modified_count == 1

    async def add_favorite(
        self, user_id: ObjectId, car_id: ObjectId, now: datetime
    ) -> Optional[UserDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": user_id, **ACTIVE},
            {"$addToSet": {"favorites": car_id}, "$set": {"updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

    async def remove_favorite(
        self, user_id: ObjectId, car_id: ObjectId, now: datetime
    ) -> Optional[UserDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": user_id, **ACTIVE},
            {"$pull": {"favorites": car_id}, "$set": {"updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

    async def list_users(
        self,
        page: int,
        limit: int,
        include_deleted: bool = False,
        search: Optional[str] = None,
    ) -> tuple[list[UserDoc], int]:
        query: dict = {} if include_deleted else dict(ACTIVE)
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"username": pattern}, {"email": pattern}]

        total = await self._col.count_documents(query)
        cursor = (
            self._col.find(query)
            .sort("created_at", DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        docs = await cursor.to_list(length=limit)
        return [UserDoc.from_mongo(d) for d in docs], total

    async def soft_delete(self, user_id: ObjectId, now: datetime) -> Optional[UserDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": user_id, **ACTIVE},
            {"$set": {"deleted": True, "deleted_at": now, "updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

    async def set_role(
        self, user_id: ObjectId, role: str, now: datetime
    ) -> Optional[UserDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": user_id, **ACTIVE},
            {"$set": {"role": role, "updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

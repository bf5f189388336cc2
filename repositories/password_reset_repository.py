"""Repository for the `password-resets` collection.

Each document walks OtpIssued → ResetTokenIssued → used. The conditional
filters on the update calls make each transition happen at most once even
when two requests race.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.token import PasswordResetDoc

COLLECTION = "password-resets"


class PasswordResetRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def count_recent(self, email: str, since: datetime) -> int:
        return await self._col.count_documents(
            {"email": email, "created_at": {"$gte": since}}
        )

    async def invalidate_pending(self, email: str, now: datetime) -> int:
        """Expire every OTP and reset token for *email* not yet used.

        Records are kept (not deleted) so they still count towards the
        hourly request limit until the TTL index removes them.
        """
        result = await self._col.update_many(
            {"email": email, "used_at": None},
            {"$set": {"expire_at": now, "reset_token_expires": now}},
        )
        return result.modified_count

    async def create(self, record: PasswordResetDoc) -> PasswordResetDoc:
        result = await self._col.insert_one(record.to_mongo())
        return record.model_copy(update={"id": result.inserted_id})

    async def find_live_otp(
        self, email: str, otp_hash: str, now: datetime, max_attempts: int
    ) -> Optional[PasswordResetDoc]:
        doc = await self._col.find_one(
            {
                "email": email,
                "otp_hash": otp_hash,
                "expire_at": {"$gt": now},
                "reset_token_hash": None,
                "attempts": {"$lt": max_attempts},
            },
            sort=[("created_at", DESCENDING)],
        )
        return PasswordResetDoc.from_mongo(doc)

    async def record_failed_attempt(self, email: str, now: datetime) -> None:
        await self._col.update_many(
            {"email": email, "expire_at": {"$gt": now}, "reset_token_hash": None},
            {"$inc": {"attempts": 1}},
        )

    async def issue_reset_token(
        self, record_id: ObjectId, reset_token_hash: str, expires: datetime
    ) -> bool:
        result = await self._col.update_one(
            {"_id": record_id, "reset_token_hash": None},
            {
                "$set": {
                    "reset_token_hash": reset_token_hash,
                    "reset_token_expires": expires,
                }
            },
        )
        return result.modified_count == 1

    async def find_by_reset_token(
        self, reset_token_hash: str, now: datetime
    ) -> Optional[PasswordResetDoc]:
        doc = await self._col.find_one(
            {
                "reset_token_hash": reset_token_hash,
                "reset_token_expires": {"$gt": now},
                "used_at": None,
            }
        )
        return PasswordResetDoc.from_mongo(doc)

    async def mark_used(self, record_id: ObjectId, now: datetime) -> bool:
        result = await self._col.update_one(
            {"_id": record_id, "used_at": None}, {"$set": {"used_at": now}}
        )
        return result.modified_count == 1

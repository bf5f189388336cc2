"""Repository for the `cars` collection."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Iterable, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.collation import Collation

from schemas.models.car import CarDoc

COLLECTION = "cars"

# Case-insensitive comparison for the make+model uniqueness check
_CASE_INSENSITIVE = Collation(locale="en", strength=2)


def build_listing_filter(
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    include_deleted: bool = False,
) -> dict[str, Any]:
    """Translate listing parameters into a MongoDB filter.

    ``search`` is matched literally (regex metacharacters escaped) against
    make and model, ignoring case.
    """
    query: dict[str, Any] = {} if include_deleted else {"deleted": False}
    if search:
        pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
        query["$or"] = [{"make": pattern}, {"model": pattern}]
    if category:
        query["category"] = category
    if status:
        query["status"] = status
    return query


class CarRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def list(
        self, query: dict[str, Any], page: int, limit: int
    ) -> tuple[list[CarDoc], int]:
        total = await self._col.count_documents(query)
        cursor = (
            self._col.find(query)
            .sort("created_at", DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        docs = await cursor.to_list(length=limit)
        return [CarDoc.from_mongo(d) for d in docs], total

    async def find_by_id(
        self, car_id: ObjectId, include_deleted: bool = False
    ) -> Optional[CarDoc]:
        query: dict = {"_id": car_id}
        if not include_deleted:
            query["deleted"] = False
        return CarDoc.from_mongo(await self._col.find_one(query))

    async def find_active_by_ids(self, car_ids: Iterable[ObjectId]) -> list[CarDoc]:
        ids = list(car_ids)
        if not ids:
            return []
        cursor = self._col.find({"_id": {"$in": ids}, "deleted": False})
        docs = await cursor.to_list(length=len(ids))
        return [CarDoc.from_mongo(d) for d in docs]

    async def find_active_duplicate(
        self, make: str, model: str, exclude_id: Optional[ObjectId] = None
    ) -> Optional[CarDoc]:
        """Another non-deleted car with the same make+model, ignoring case."""
        query: dict = {"make": make, "model": model, "deleted": False}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        doc = await self._col.find_one(query, collation=_CASE_INSENSITIVE)
        return CarDoc.from_mongo(doc)

    async def create(self, car: CarDoc) -> CarDoc:
        result = await self._col.insert_one(car.to_mongo())
        return car.model_copy(update={"id": result.inserted_id})

    async def update(
        self, car_id: ObjectId, updates: dict[str, Any], now: datetime
    ) -> Optional[CarDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": car_id},
            {"$set": {**updates, "updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        return CarDoc.from_mongo(doc)

    async def soft_delete(self, car_id: ObjectId, now: datetime) -> Optional[CarDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": car_id, "deleted": False},
            {"$set": {"deleted": True, "deleted_at": now, "updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        return CarDoc.from_mongo(doc)

    async def restore(self, car_id: ObjectId, now: datetime) -> Optional[CarDoc]:
        doc = await self._col.find_one_and_update(
            {"_id": car_id, "deleted": True},
            {"$set": {"deleted": False, "deleted_at": None, "updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        return CarDoc.from_mongo(doc)

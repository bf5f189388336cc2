"""
Shared building blocks for the document models.

PyObjectId      lets pydantic accept either an ObjectId or its 24-char hex
                form and always hands back a real ObjectId.
MongoBaseModel  maps `_id` onto `id` and converts to/from raw pymongo dicts.
SoftDeleteFields / TimestampFields
                field groups mixed into the user and car documents.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic_core import core_schema


class PyObjectId(ObjectId):
    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        # Serialised as hex so DTOs and JSON responses never see raw ObjectIds
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.to_string_ser_schema(),
        )

    @classmethod
    def _validate(cls, v: Any) -> ObjectId:
        if isinstance(v, ObjectId):
            return v
        if isinstance(v, str) and ObjectId.is_valid(v):
            return ObjectId(v)
        raise ValueError(f"Invalid ObjectId: {v!r}")


class MongoBaseModel(BaseModel):
    """
    Base class of every collection document.

    The MongoDB primary key lives on `id` (alias `_id`). Unknown keys on a
    stored document are ignored so older documents keep loading after a
    field is dropped.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="ignore",
    )

    id: Optional[PyObjectId] = Field(default=None, alias="_id")

    def to_mongo(self) -> dict:
        """Dict for insert_one; `_id` is left out until MongoDB assigns one.

        ObjectIds and datetimes stay BSON-native (no JSON-mode dump).
        """
        doc = self.model_dump(by_alias=True)
        if doc.get("_id") is None:
            del doc["_id"]
        return doc

    @classmethod
    def from_mongo(cls, data: Optional[dict]) -> Optional[Any]:
        """Validate a raw document; a None lookup result stays None."""
        return None if data is None else cls.model_validate(data)


class SoftDeleteFields(BaseModel):
    deleted: bool = False
    deleted_at: Optional[datetime] = None


class TimestampFields(BaseModel):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

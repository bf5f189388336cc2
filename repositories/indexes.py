"""
Index definitions, applied once at startup from the app lifespan.

Unique indexes on users.email / users.username are what turn concurrent
duplicate registrations into DuplicateKeyError (→ 409).
"""

from __future__ import annotations

from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.asynchronous.database import AsyncDatabase

from repositories import car_repository, password_reset_repository
from repositories import test_drive_repository, user_repository
from shared.logging import get_logger

log = get_logger(__name__)

# Expired reset records linger an hour for auditing before Mongo drops them
PASSWORD_RESET_RETENTION_SECONDS = 3600

INDEXES: dict[str, list[IndexModel]] = {
    user_repository.COLLECTION: [
        IndexModel([("email", ASCENDING)], unique=True, name="email_unique"),
        IndexModel([("username", ASCENDING)], unique=True, name="username_unique"),
        IndexModel([("deleted", ASCENDING), ("created_at", DESCENDING)]),
    ],
    car_repository.COLLECTION: [
        IndexModel([("deleted", ASCENDING), ("created_at", DESCENDING)]),
        IndexModel([("make", ASCENDING), ("model", ASCENDING)]),
        IndexModel([("category", ASCENDING)]),
    ],
    password_reset_repository.COLLECTION: [
        IndexModel([("email", ASCENDING), ("created_at", DESCENDING)]),
        IndexModel([("reset_token_hash", ASCENDING)]),
        IndexModel(
            [("expire_at", ASCENDING)],
            expireAfterSeconds=PASSWORD_RESET_RETENTION_SECONDS,
        ),
    ],
    test_drive_repository.COLLECTION: [
        IndexModel([("car_id", ASCENDING), ("created_at", DESCENDING)]),
    ],
}


async def ensure_indexes(db: AsyncDatabase) -> None:
    for collection, models in INDEXES.items():
        names = await db[collection].create_indexes(models)
        log.info("indexes_ensured", collection=collection, indexes=names)

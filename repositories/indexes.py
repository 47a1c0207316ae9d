"""
Index bootstrap, run once from the app lifespan.

Failures are logged and swallowed so a read-only replica or a missing
privilege does not stop the service from booting.
"""

from __future__ import annotations

from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from repositories import security_event_repository, verification_repository
from shared.logging import get_logger

log = get_logger(__name__)


async def ensure_indexes(db: AsyncDatabase) -> None:
    try:
        verifications = db[verification_repository.COLLECTION_NAME]
        # One record per email; a new code request replaces the old record
        await verifications.create_index([("email", ASCENDING)], unique=True)
        await verifications.create_index([("expires_at", ASCENDING)])
        await verifications.create_index([("created_at", DESCENDING)])
        await verifications.create_index(
            [("client_ip", ASCENDING), ("created_at", DESCENDING)]
        )

        events = db[security_event_repository.COLLECTION_NAME]
        await events.create_index([("timestamp", DESCENDING)])
        await events.create_index([("event_type", ASCENDING), ("timestamp", DESCENDING)])

        log.info("mongodb_indexes_ensured")
    except Exception as e:
        log.error("mongodb_index_creation_failed", error=str(e), error_type=type(e).__name__)

"""
Repository for the `pre-signup-verifications` collection.

Every state change is a single-document atomic operation keyed by email:
- failed attempts use $inc through find_one_and_update, so concurrent
  mismatches never lose an increment
- success is a conditional update on verified=False, so exactly one
  caller wins the false → true transition
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, AsyncIterator, Optional

from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.verification import VerificationRecordDoc

COLLECTION_NAME = "pre-signup-verifications"


# ── Cleanup predicates ────────────────────────────────────────────────────────


def expired_filter(now: datetime) -> dict[str, Any]:
    return {"expires_at": {"$lt": now}}


def stale_unverified_filter(cutoff: datetime) -> dict[str, Any]:
    return {"verified": False, "created_at": {"$lt": cutoff}}


def abusive_filter(threshold: int) -> dict[str, Any]:
    return {"failed_attempts": {"$gte": threshold}, "verified": False}


class VerificationRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    # ── Gate ──────────────────────────────────────────────────────────────────

    async def find_active(self, email: str, now: datetime) -> Optional[VerificationRecordDoc]:
        """Return the record for *email* whose expiry is strictly after *now*."""
        doc = await self._col.find_one({"email": email, "expires_at": {"$gt": now}})
        return VerificationRecordDoc.from_mongo(doc)

    async def record_failed_attempt(
        self, email: str, now: datetime
    ) -> Optional[VerificationRecordDoc]:
        """Atomically bump failed_attempts and stamp last_attempt_at.

        Returns the updated record, or None if it vanished (expired or
        cleaned up) between the read and this write.
        """
        doc = await self._col.find_one_and_update(
            {"email": email, "expires_at": {"$gt": now}},
            {"$inc": {"failed_attempts": 1}, "$set": {"last_attempt_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        return VerificationRecordDoc.from_mongo(doc)

    async def mark_verified(self, email: str, now: datetime) -> bool:
        """Flip verified to True. Returns False if another request got there first."""
        result = await self._col.update_one(
            {"email": email, "verified": False, "expires_at": {"$gt": now}},
            {
                "$set": {
                    "verified": True,
                    "verified_at": now,
                    "failed_attempts": 0,
                    "last_attempt_at": now,
                }
            },
        )
        return result.modified_count == 1

    # ── Code request ──────────────────────────────────────────────────────────

    async def replace_for_email(self, record: VerificationRecordDoc) -> None:
        """Store *record* as the only record for its email."""
        await self._col.replace_one(
            {"email": record.email}, record.to_mongo(include_id=False), upsert=True
        )

    async def delete_for_email(self, email: str, code: str) -> int:
        result = await self._col.delete_many({"email": email, "code": code})
        return result.deleted_count

    async def count_by_ip_since(self, client_ip: str, since: datetime) -> int:
        return await self._col.count_documents(
            {"client_ip": client_ip, "created_at": {"$gt": since}}
        )

    # ── Cleanup ───────────────────────────────────────────────────────────────

    async def delete_expired(self, now: datetime) -> int:
        result = await self._col.delete_many(expired_filter(now))
        return result.deleted_count

    async def delete_stale_unverified(self, cutoff: datetime) -> int:
        result = await self._col.delete_many(stale_unverified_filter(cutoff))
        return result.deleted_count

    async def delete_abusive(self, threshold: int) -> int:
        result = await self._col.delete_many(abusive_filter(threshold))
        return result.deleted_count

    async def count_all(self) -> int:
        return await self._col.count_documents({})

    async def count_expired(self, now: datetime) -> int:
        return await self._col.count_documents(expired_filter(now))

    async def count_stale_unverified(self, cutoff: datetime) -> int:
        return await self._col.count_documents(stale_unverified_filter(cutoff))

    async def count_abusive(self, threshold: int) -> int:
        return await self._col.count_documents(abusive_filter(threshold))

    async def count_cleanup_candidates(
        self, now: datetime, cutoff: datetime, threshold: int
    ) -> int:
        """Count records matching at least one cleanup predicate."""
        return await self._col.count_documents(
            {
                "$or": [
                    expired_filter(now),
                    stale_unverified_filter(cutoff),
                    abusive_filter(threshold),
                ]
            }
        )

    async def count_verified_since(self, since: datetime) -> int:
        return await self._col.count_documents(
            {"verified": True, "verified_at": {"$gt": since}}
        )

    # ── Analytics ─────────────────────────────────────────────────────────────

    async def count_created_since(self, since: datetime) -> int:
        return await self._col.count_documents({"created_at": {"$gt": since}})

    async def iter_created_since(self, since: datetime) -> AsyncIterator[VerificationRecordDoc]:
        cursor = self._col.find({"created_at": {"$gt": since}})
        async for doc in cursor:
            yield VerificationRecordDoc.from_mongo(doc)

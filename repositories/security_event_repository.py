"""Repository for the `security-events` collection."""

from __future__ import annotations

from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.security_event import SecurityEventDoc

COLLECTION_NAME = "security-events"


class SecurityEventRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def insert(self, event: SecurityEventDoc) -> str:
        result = await self._col.insert_one(event.to_mongo())
        return str(result.inserted_id)

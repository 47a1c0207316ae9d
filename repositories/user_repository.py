"""Read-only access to the storefront `users` collection."""

from __future__ import annotations

from pymongo.asynchronous.collection import AsyncCollection

COLLECTION_NAME = "users"


class UserRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def exists_by_email(self, email: str) -> bool:
        doc = await self._col.find_one({"email": email}, projection={"_id": 1})
        return doc is not None

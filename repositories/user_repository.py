"""User lookups."""

from __future__ import annotations

from typing import Optional

from pymongo.asynchronous.database import AsyncDatabase

from schemas.models.user import UserDoc


class UserRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._users = db["user"]

    async def find_by_id(self, user_id: str) -> Optional[UserDoc]:
        doc = await self._users.find_one({"_id": user_id, "deleted_at": None})
        return UserDoc.from_mongo(doc)

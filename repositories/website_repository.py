"""Website and team membership lookups."""

from __future__ import annotations

from typing import Optional

from pymongo.asynchronous.database import AsyncDatabase

from schemas.models.user import TeamUserDoc
from schemas.models.website import WebsiteDoc


class WebsiteRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._websites = db["website"]
        self._team_users = db["team_user"]

    async def find_by_id(self, website_id: str) -> Optional[WebsiteDoc]:
        """Return the website unless it is missing or soft-deleted."""
        doc = await self._websites.find_one({"_id": website_id, "deleted_at": None})
        return WebsiteDoc.from_mongo(doc)

    async def find_team_membership(
        self, team_id: str, user_id: str
    ) -> Optional[TeamUserDoc]:
        doc = await self._team_users.find_one({"team_id": team_id, "user_id": user_id})
        return TeamUserDoc.from_mongo(doc)

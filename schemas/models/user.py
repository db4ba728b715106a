"""
User and team membership document models.

Maps to the `user` and `team_user` MongoDB collections.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from schemas.models.base import MongoBaseModel

ROLE_ADMIN = "admin"
ROLE_USER = "user"


class UserDoc(MongoBaseModel):
    """Document model for the `user` collection."""

    username: str
    role: str = ROLE_USER
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class TeamUserDoc(MongoBaseModel):
    """Membership of a user in a team (`team_user` collection)."""

    team_id: str
    user_id: str
    role: str = "member"

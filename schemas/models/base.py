"""
Base model for MongoDB document models.

Documents are keyed by UUID strings (the same identifiers the API exposes),
so ``_id`` maps straight onto a ``str`` field.
from_mongo() converts a raw pymongo dict into a model instance.
"""

from __future__ import annotations

from typing import Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

DocT = TypeVar("DocT", bound="MongoBaseModel")


class MongoBaseModel(BaseModel):
    """
    Base for all document models.

    Stores the MongoDB _id as `id`. Unknown document fields are ignored so
    older documents with extra keys still load.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")

    @classmethod
    def from_mongo(cls: type[DocT], data: Optional[dict]) -> Optional[DocT]:
        """Build a model instance from a raw MongoDB document dict.

        Returns None when data is None (e.g. find_one returns None).
        """
        if data is None:
            return None
        return cls.model_validate(data)

"""
Aggregate queries over the `website_event` collection.

get_website_stats() reduces every matching event in a window to a single
metric row:

- pageviews — number of matching events
- visitors  — distinct sessions
- visits    — distinct visits
- bounces   — visits with exactly one matching event
- totaltime — sum over visits of (last event − first event), in seconds
"""

from __future__ import annotations

from typing import Any

from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from schemas.dto.requests.stats import WebsiteStatsFilters
from schemas.models.website import EVENT_TYPE_CUSTOM, EVENT_TYPE_PAGEVIEW
from shared.datetime_utils import DateRange
from shared.logging import get_logger

log = get_logger(__name__)

METRIC_NAMES = ("pageviews", "visitors", "visits", "bounces", "totaltime")

# Filter name → event document field
FILTER_FIELDS = {
    "url": "url_path",
    "urls": "url_path",
    "referrer": "referrer_domain",
    "title": "page_title",
    "query": "url_query",
    "event": "event_name",
    "os": "os",
    "browser": "browser",
    "device": "device",
    "country": "country",
    "region": "subdivision1",
    "city": "city",
}


def empty_stats_row() -> dict[str, int]:
    return {name: 0 for name in METRIC_NAMES}


def build_match_stage(
    website_id: str, filters: WebsiteStatsFilters, date_range: DateRange
) -> dict[str, Any]:
    match: dict[str, Any] = {
        "website_id": website_id,
        "created_at": {"$gte": date_range.start_date, "$lte": date_range.end_date},
        # Stats count pageviews unless a specific custom event is requested
        "event_type": EVENT_TYPE_CUSTOM if filters.event else EVENT_TYPE_PAGEVIEW,
    }

    for name, value in filters.active().items():
        field = FILTER_FIELDS[name]
        condition = match.setdefault(field, {})
        if name == "urls":
            condition["$in"] = list(value)
        else:
            condition["$eq"] = value

    return match


def build_website_stats_pipeline(
    website_id: str, filters: WebsiteStatsFilters, date_range: DateRange
) -> list[dict[str, Any]]:
    return [
        {"$match": build_match_stage(website_id, filters, date_range)},
        {
            "$group": {
                "_id": "$visit_id",
                "session_id": {"$first": "$session_id"},
                "count": {"$sum": 1},
                "first_at": {"$min": "$created_at"},
                "last_at": {"$max": "$created_at"},
            }
        },
        {
            "$group": {
                "_id": None,
                "pageviews": {"$sum": "$count"},
                "sessions": {"$addToSet": "$session_id"},
                "visits": {"$sum": 1},
                "bounces": {"$sum": {"$cond": [{"$eq": ["$count", 1]}, 1, 0]}},
                "totaltime": {
                    "$sum": {
                        "$floor": {
                            "$divide": [{"$subtract": ["$last_at", "$first_at"]}, 1000]
                        }
                    }
                },
            }
        },
        {
            "$project": {
                "_id": 0,
                "pageviews": 1,
                "visitors": {"$size": "$sessions"},
                "visits": 1,
                "bounces": 1,
                "totaltime": 1,
            }
        },
    ]


class EventRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._events = db["website_event"]

    async def get_website_stats(
        self,
        website_id: str,
        filters: WebsiteStatsFilters,
        date_range: DateRange,
    ) -> list[dict[str, Any]]:
        """Return the metric rows for *website_id* within *date_range*.

        An empty window still yields one row, with every metric at 0.
        """
        pipeline = build_website_stats_pipeline(website_id, filters, date_range)
        cursor = await self._events.aggregate(pipeline)
        rows = await cursor.to_list()
        return rows or [empty_stats_row()]


async def ensure_indexes(db: AsyncDatabase) -> None:
    """Create the indexes the stats queries and access checks rely on."""
    try:
        await db["website_event"].create_index(
            [("website_id", ASCENDING), ("created_at", DESCENDING)]
        )
        await db["website"].create_index([("user_id", ASCENDING)])
        await db["website"].create_index([("team_id", ASCENDING)])
        await db["team_user"].create_index(
            [("team_id", ASCENDING), ("user_id", ASCENDING)], unique=True
        )
    except PyMongoError as e:
        log.warning("ensure_indexes_failed", error=str(e), error_type=type(e).__name__)

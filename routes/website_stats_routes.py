"""
Website statistics endpoint.

GET /api/websites/{websiteId}/stats — traffic metrics for a window, each
paired with its change against the preceding window of the same length.

Rules:
- Auth failure → 401 (before validation).
- Invalid parameters → 400 with field-level details.
- Caller cannot view the website → 401, no stats are queried.
- Any other method on the path → 405.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import (
    get_website_repository,
    get_website_stats_query,
    get_website_stats_service,
    require_auth,
)
from errors import AuthenticationError
from repositories.website_repository import WebsiteRepository
from schemas.dto.requests.stats import WebsiteStatsQuery
from schemas.dto.responses.common import ErrorResponse
from schemas.dto.responses.stats import WebsiteStats
from services.website_access import can_view_website
from services.website_stats_service import WebsiteStatsService
from shared.auth import AuthContext
from shared.datetime_utils import parse_date_range_query
from shared.logging import get_logger, should_sample

log = get_logger(__name__)

router = APIRouter(prefix="/api/websites", tags=["stats"])


@router.get(
    "/{websiteId}/stats",
    response_model=WebsiteStats,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        405: {"model": ErrorResponse},
    },
)
async def website_stats(
    auth: AuthContext = Depends(require_auth),
    query: WebsiteStatsQuery = Depends(get_website_stats_query),
    websites: WebsiteRepository = Depends(get_website_repository),
    service: WebsiteStatsService = Depends(get_website_stats_service),
) -> WebsiteStats:
    """
    Get traffic statistics for a website.

    ## Query Parameters
    - **startAt**, **endAt** (number, required): window bounds in epoch milliseconds
    - **url**, **referrer**, **title**, **query**, **event**, **os**, **browser**,
      **device**, **country**, **region**, **city** (string): exact-match filters
    - **urls** (string): `|`-separated paths, e.g. `/pricing|/docs/start`

    ## Response Format
    ```json
    {
      "pageviews": {"value": 100, "change": 20},
      "visitors": {"value": 35, "change": -3},
      "visits": {"value": 40, "change": 0},
      "bounces": {"value": 12, "change": 1},
      "totaltime": {"value": 5230, "change": 410}
    }
    ```
    `change` is the current value minus the value for the window of the
    same length that ends where this one starts.
    """
    website_id = query.website_id

    if not await can_view_website(auth, website_id, websites):
        log.warning(
            "website_stats_unauthorized",
            website_id=website_id,
            user_id=auth.user_id,
            via_share_link=auth.share_token is not None,
        )
        raise AuthenticationError("unauthorized")

    date_range = parse_date_range_query(query)
    filters = query.to_filters()

    stats = await service.get_stats(website_id, filters, date_range)

    if should_sample("website_stats_query"):
        log.info(
            "website_stats_query",
            website_id=website_id,
            start_date=date_range.start_date.isoformat(),
            end_date=date_range.end_date.isoformat(),
            filters=sorted(filters.active()),
        )
    return stats

"""
Website and website event document models.

`website`       — one tracked site, owned by a user and optionally shared
                  with a team.
`website_event` — one raw tracked event. Session attributes (os, browser,
                  device, location) are copied onto each event so the stats
                  pipeline never needs a $lookup.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from schemas.models.base import MongoBaseModel

EVENT_TYPE_PAGEVIEW = 1
EVENT_TYPE_CUSTOM = 2


class WebsiteDoc(MongoBaseModel):
    """Document model for the `website` collection."""

    name: str
    domain: Optional[str] = None
    user_id: Optional[str] = None
    team_id: Optional[str] = None
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class WebsiteEventDoc(MongoBaseModel):
    """Document model for the `website_event` collection."""

    website_id: str
    session_id: str
    visit_id: str
    created_at: datetime
    event_type: int = EVENT_TYPE_PAGEVIEW
    event_name: Optional[str] = None

    url_path: str
    url_query: Optional[str] = None
    referrer_domain: Optional[str] = None
    page_title: Optional[str] = None

    os: Optional[str] = None
    browser: Optional[str] = None
    device: Optional[str] = None
    country: Optional[str] = None
    subdivision1: Optional[str] = None
    city: Optional[str] = None

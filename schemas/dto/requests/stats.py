"""
Request DTOs for the website statistics endpoint.

WebsiteStatsQuery   — GET /api/websites/{websiteId}/stats  (path + query parameters)
WebsiteStatsFilters — the optional filter dimensions, built once from a
                      validated query and passed unchanged to the query layer
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.filters import is_valid_urls, urls_filter

# Any RFC 4122 version 1-5 UUID, or the nil UUID
_UUID_RE = re.compile(
    r"^(?:[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}"
    r"|00000000-0000-0000-0000-000000000000)$",
    re.IGNORECASE,
)


class WebsiteStatsQuery(BaseModel):
    """Parameters for GET /api/websites/{websiteId}/stats.

    ``startAt``/``endAt`` are epoch milliseconds. All filters are optional
    strings; ``urls`` is a ``|``-separated list of paths (``/a|/b/c``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    website_id: str = Field(alias="websiteId")
    start_at: float = Field(alias="startAt", allow_inf_nan=False)
    end_at: float = Field(alias="endAt", allow_inf_nan=False)

    url: Optional[str] = None
    urls: Optional[str] = None
    referrer: Optional[str] = None
    title: Optional[str] = None
    query: Optional[str] = None
    event: Optional[str] = None
    os: Optional[str] = None
    browser: Optional[str] = None
    device: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None

    @field_validator("website_id", mode="after")
    @classmethod
    def _validate_website_id(cls, v: str) -> str:
        if not _UUID_RE.match(v):
            raise ValueError("websiteId must be a valid UUID")
        return v

    @field_validator("urls", mode="after")
    @classmethod
    def _validate_urls(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_urls(v):
            raise ValueError("Invalid URLs format")
        return v

    def to_filters(self) -> "WebsiteStatsFilters":
        return WebsiteStatsFilters(
            url=self.url,
            urls=urls_filter(self.urls),
            referrer=self.referrer,
            title=self.title,
            query=self.query,
            event=self.event,
            os=self.os,
            browser=self.browser,
            device=self.device,
            country=self.country,
            region=self.region,
            city=self.city,
        )


@dataclass(frozen=True)
class WebsiteStatsFilters:
    """Optional event filters; ``None`` means "do not filter on this dimension"."""

    url: Optional[str] = None
    urls: Optional[list[str]] = None
    referrer: Optional[str] = None
    title: Optional[str] = None
    query: Optional[str] = None
    event: Optional[str] = None
    os: Optional[str] = None
    browser: Optional[str] = None
    device: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None

    def active(self) -> dict[str, object]:
        """Return only the filters that are set."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

"""
Response DTO for the website statistics endpoint.

WebsiteStats — GET /api/websites/{websiteId}/stats  (200)

Keys are metric names produced by the query layer (``pageviews``,
``visitors``, ``visits``, ``bounces``, ``totaltime``), so the body is a
flexible dict of WebsiteStatsMetric rather than a rigid model.
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, ConfigDict

Number = Union[int, float]


class WebsiteStatsMetric(BaseModel):
    """One metric: current-period value and change against the previous period."""

    model_config = ConfigDict(populate_by_name=True)

    value: Number
    change: Number


WebsiteStats = dict[str, WebsiteStatsMetric]

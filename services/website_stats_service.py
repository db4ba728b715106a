"""
Period-over-period website statistics.

The current window is compared against the window of the same length that
ends where the current one starts. Both windows are queried with identical
filters; each metric of the current row is reported with its absolute
change against the previous row.
"""

from __future__ import annotations

import asyncio
import math
from datetime import timedelta
from decimal import Decimal
from typing import Any, Mapping, Union

from bson.decimal128 import Decimal128

from errors import ValidationError
from repositories.event_repository import EventRepository
from schemas.dto.requests.stats import WebsiteStatsFilters
from schemas.dto.responses.stats import WebsiteStats, WebsiteStatsMetric
from shared.datetime_utils import DateRange, difference_in_minutes

Number = Union[int, float]


def previous_period(date_range: DateRange) -> DateRange:
    """Return the comparison window immediately preceding *date_range*.

    The shift is the whole number of minutes in *date_range*; any sub-minute
    remainder is dropped, so the previous window overlaps the current one by
    that remainder.

    Raises:
        ValidationError: when the previous window would start before the
            earliest representable date.
    """
    shift = timedelta(
        minutes=difference_in_minutes(date_range.end_date, date_range.start_date)
    )
    try:
        start_date = date_range.start_date - shift
    except OverflowError as e:
        raise ValidationError(
            "startAt is too early to compare against a previous period",
            field="startAt",
        ) from e
    return DateRange(start_date=start_date, end_date=date_range.end_date - shift)


def to_number(value: Any) -> float:
    """Coerce an aggregate value to float.

    ``None`` and blank strings count as 0; anything else that is not
    numeric becomes NaN.
    """
    if value is None:
        return 0.0
    if isinstance(value, Decimal128):
        value = value.to_decimal()
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def _finite_or_zero(number: float) -> Number:
    if not math.isfinite(number):
        return 0
    if number.is_integer():
        return int(number)
    return number


def merge_period_stats(
    current: Mapping[str, Any], previous: Mapping[str, Any]
) -> WebsiteStats:
    """Pair each metric of *current* with its change against *previous*.

    Metrics missing from *previous* (or non-numeric on either side) report a
    change of 0; non-numeric current values report a value of 0. A ``None``
    value counts as 0, so it still produces a change.
    """
    stats: WebsiteStats = {}
    for key, raw_value in current.items():
        value = to_number(raw_value)
        change = value - (to_number(previous[key]) if key in previous else math.nan)
        stats[key] = WebsiteStatsMetric(
            value=_finite_or_zero(value),
            change=_finite_or_zero(change),
        )
    return stats


class WebsiteStatsService:
    def __init__(self, events: EventRepository) -> None:
        self._events = events

    async def get_stats(
        self,
        website_id: str,
        filters: WebsiteStatsFilters,
        date_range: DateRange,
    ) -> WebsiteStats:
        prev_range = previous_period(date_range)

        metrics, prev_period = await asyncio.gather(
            self._events.get_website_stats(website_id, filters, date_range),
            self._events.get_website_stats(website_id, filters, prev_range),
        )

        current_row = metrics[0] if metrics else {}
        previous_row = prev_period[0] if prev_period else {}
        return merge_period_stats(current_row, previous_row)

"""
Date/time parsing and range utilities — framework-agnostic.

Stats queries address time by epoch milliseconds (``startAt``/``endAt``);
everything past the request boundary works with timezone-aware UTC
datetimes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from errors import ValidationError

_ONE_MINUTE = timedelta(minutes=1)


@dataclass(frozen=True)
class DateRange:
    """A concrete, closed time window in UTC."""

    start_date: datetime
    end_date: datetime


def from_epoch_millis(value: Any) -> Optional[datetime]:
    """Convert epoch milliseconds into a timezone-aware UTC datetime.

    Returns ``None`` when *value* is ``None``, not numeric, or outside the
    range ``datetime`` can represent.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OSError, OverflowError):
        return None


def parse_date_range_query(query: Any) -> DateRange:
    """Resolve the ``startAt``/``endAt`` pair of a stats query into a DateRange.

    Args:
        query: Any object exposing ``start_at`` and ``end_at`` in epoch
            milliseconds (normally a validated ``WebsiteStatsQuery``).

    Raises:
        ValidationError: when either bound cannot be represented, or when
            ``endAt`` precedes ``startAt``.
    """
    start_date = from_epoch_millis(query.start_at)
    if start_date is None:
        raise ValidationError("startAt is not a valid timestamp", field="startAt")

    end_date = from_epoch_millis(query.end_at)
    if end_date is None:
        raise ValidationError("endAt is not a valid timestamp", field="endAt")

    if end_date < start_date:
        raise ValidationError("endAt must not be before startAt", field="endAt")

    return DateRange(start_date=start_date, end_date=end_date)


def difference_in_minutes(end: datetime, start: datetime) -> int:
    """Whole minutes between *start* and *end*, truncated toward zero."""
    return int((end - start) / _ONE_MINUTE)

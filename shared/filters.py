"""
Query filter helpers shared by request validation and the query layer.
"""

from __future__ import annotations

import re
from typing import Optional

# One or more paths, each starting with "/", separated by "|"
URLS_PATTERN = r"^\/[^|]+\|?(\/[^|]+\|?)*$"

_URLS_RE = re.compile(URLS_PATTERN)


def is_valid_urls(value: str) -> bool:
    """Return True if *value* is a ``|``-separated list of paths."""
    return bool(_URLS_RE.match(value))


def urls_filter(raw: Optional[str]) -> Optional[list[str]]:
    """Split a ``/a|/b`` path list into its paths.

    Returns ``None`` when *raw* is missing or holds no paths, so callers can
    treat "no urls filter" uniformly.
    """
    if not raw:
        return None
    paths = [part.strip() for part in raw.split("|") if part.strip()]
    return paths or None

"""
Centralized logging for the website stats service.

This module sets up structured logging with:
- JSON formatting for production, pretty console for development
- IP hashing for privacy in production
- Redaction of sensitive fields (tokens, keys, secrets)
- Sampling for high-frequency events

get_logger() may be called at import time; configuration happens once in
the app factory via setup_logging().
"""

from __future__ import annotations

import hashlib
import logging
import random
import sys
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

# Sampling rates for high-frequency events; overridden by setup_logging()
SAMPLING_RATES: dict[str, float] = {
    "website_stats_query": 0.20,
}

# Sensitive fields to redact from logs
REDACTED_FIELDS = {
    "authorization",
    "cookie",
    "token",
    "share_token",
    "access_token",
    "secret",
    "key",
    "password",
}

_SENSITIVE_SUBSTRINGS = ("password", "token", "key", "secret")
_NEVER_REDACT = {"level", "event", "timestamp", "logger"}

_state = {"production": False}


def hash_ip(ip_address: Optional[str]) -> Optional[str]:
    """
    Hash IP address for privacy in production.

    In production, returns SHA-256 hash (first 16 chars).
    In development, returns the original IP for easier debugging.
    """
    if ip_address is None:
        return None
    if _state["production"] and ip_address:
        return hashlib.sha256(ip_address.encode()).hexdigest()[:16]
    return ip_address


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if key in _NEVER_REDACT:
            continue
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(s in lowered for s in _SENSITIVE_SUBSTRINGS):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str = "console") -> None:
    """
    Configure structlog with appropriate processors for the environment.

    Production: JSON formatting for easy parsing
    Development: Pretty console formatting with colors
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
    ]

    if log_format == "json":
        renderers: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer formats exc_info itself
        renderers = [
            structlog.dev.ConsoleRenderer(
                colors=True,
                pad_event=15,
                sort_keys=False,
            )
        ]

    structlog.configure(
        processors=shared_processors + renderers,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str = "INFO") -> None:
    """Route stdlib logging to stdout at the configured level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Reduce noise from third-party libraries
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    sample_rate_stats: float = 0.20,
    production: bool = False,
) -> None:
    """
    Initialize the logging system.

    Should be called once, early in application startup (in create_app).
    """
    _state["production"] = production
    SAMPLING_RATES["website_stats_query"] = sample_rate_stats

    configure_stdlib_logging(log_level)
    configure_structlog(log_format)

    get_logger(__name__).info(
        "logging_initialized",
        log_level=log_level,
        log_format=log_format,
        production=production,
    )


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("website_stats_query", website_id="...")
    """
    return structlog.get_logger(name)


def should_sample(event_type: str) -> bool:
    """Return True if an event of *event_type* should be logged."""
    sample_rate = SAMPLING_RATES.get(event_type, 1.0)
    if sample_rate >= 1.0:
        return True
    if sample_rate <= 0.0:
        return False
    return random.random() < sample_rate

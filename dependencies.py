"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain async functions
used with FastAPI's Depends() system.

The stats route resolves, in order: require_auth (401 on failure), then
get_website_stats_query (400 on failure). Either one short-circuits the
request by raising an AppError before the handler body runs.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import Depends, Path, Request
from pydantic import ValidationError as PydanticValidationError
from pymongo.asynchronous.database import AsyncDatabase

from config import AppSettings
from errors import AuthenticationError, ValidationError
from repositories.event_repository import EventRepository
from repositories.user_repository import UserRepository
from repositories.website_repository import WebsiteRepository
from schemas.dto.requests.stats import WebsiteStatsQuery
from services.website_stats_service import WebsiteStatsService
from shared.auth import (
    SHARE_TOKEN_HEADER,
    AuthContext,
    decode_share_token,
    decode_token,
    extract_bearer_token,
)


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


async def get_db(request: Request) -> AsyncDatabase:
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


async def get_redis(request: Request):
    """Return the async Redis client from app.state (may be None if not configured)."""
    return request.app.state.redis


async def get_user_repository(db: AsyncDatabase = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


async def get_website_repository(
    db: AsyncDatabase = Depends(get_db),
) -> WebsiteRepository:
    return WebsiteRepository(db)


async def get_event_repository(db: AsyncDatabase = Depends(get_db)) -> EventRepository:
    return EventRepository(db)


async def get_website_stats_service(
    events: EventRepository = Depends(get_event_repository),
) -> WebsiteStatsService:
    return WebsiteStatsService(events)


async def require_auth(
    request: Request,
    settings: AppSettings = Depends(get_settings),
    users: UserRepository = Depends(get_user_repository),
) -> AuthContext:
    """Authenticate the caller from a bearer token and/or a share token.

    A rejected bearer token is only fatal when no valid share token comes
    with it; otherwise the request proceeds as a share-link viewer.
    """
    user = None
    bearer_error: Optional[AuthenticationError] = None
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token:
        try:
            claims = decode_token(token, settings.jwt)
            user = await users.find_by_id(str(claims.get("sub")))
            if user is None:
                raise AuthenticationError("user not found")
        except AuthenticationError as e:
            bearer_error = e

    share_token: Optional[dict] = None
    raw_share_token = request.headers.get(SHARE_TOKEN_HEADER)
    if raw_share_token:
        share_token = decode_share_token(raw_share_token, settings.jwt)

    if share_token is None and bearer_error is not None:
        raise bearer_error

    if user is None and share_token is None:
        raise AuthenticationError("authentication required")

    if user is not None:
        structlog.contextvars.bind_contextvars(user_id=user.id)
    return AuthContext(user=user, share_token=share_token)


async def get_website_stats_query(
    request: Request,
    website_id: str = Path(alias="websiteId"),
) -> WebsiteStatsQuery:
    """Validate path + query parameters of the stats route."""
    raw = dict(request.query_params)
    raw["websiteId"] = website_id
    try:
        return WebsiteStatsQuery.model_validate(raw)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(
            first.get("msg", "invalid request"), field=field, details=errors
        ) from e

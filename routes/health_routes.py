"""
Health check endpoint.

GET /health — checks MongoDB and Redis connectivity.
Rules:
- MongoDB failure → "unhealthy" (503); stats cannot be served without it.
- Redis failure or absence → "degraded" (200).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pymongo.asynchronous.database import AsyncDatabase

from dependencies import get_db, get_redis
from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])


async def _check_mongo(db: AsyncDatabase) -> str:
    try:
        await db.client.admin.command("ping")
        return "ok"
    except Exception as e:
        log.error("health_mongo_failed", error=str(e), error_type=type(e).__name__)
        return "error"


async def _check_redis(redis) -> str:
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()
        return "ok"
    except Exception as e:
        log.warning("health_redis_failed", error=str(e), error_type=type(e).__name__)
        return "error"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncDatabase = Depends(get_db),
    redis=Depends(get_redis),
) -> JSONResponse:
    checks = {
        "mongodb": await _check_mongo(db),
        "redis": await _check_redis(redis),
    }

    if checks["mongodb"] != "ok":
        overall = "unhealthy"
    elif checks["redis"] != "ok":
        overall = "degraded"
    else:
        overall = "healthy"

    body = HealthResponse(status=overall, checks=checks)
    return JSONResponse(
        status_code=503 if overall == "unhealthy" else 200,
        content=body.model_dump(),
    )

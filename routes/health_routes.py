"""
GET /health: dependency check for load balancers and uptime probes.

MongoDB is required, so a failed ping reports "unhealthy" with a 503.
Redis only backs rate limiting; when it is missing or failing the service
reports "degraded" and still answers 200.
"""

from __future__ import annotations

import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.common import CheckStatus, HealthResponse
from shared.datetime_utils import utcnow
from shared.logging import get_logger

router = APIRouter(tags=["health"])
log = get_logger(__name__)


async def _check_mongodb(request: Request) -> CheckStatus:
    try:
        await request.app.state.db.client.admin.command("ping")
    except Exception as e:
        log.warning("health_mongodb_failed", error=str(e), error_type=type(e).__name__)
        return "error"
    return "ok"


async def _check_redis(request: Request) -> CheckStatus:
    redis = request.app.state.redis
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()
    except Exception as e:
        log.warning("health_redis_failed", error=str(e), error_type=type(e).__name__)
        return "error"
    return "ok"


@router.get("/health", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
async def health_check(request: Request) -> JSONResponse:
    started = time.perf_counter()
    checks = {
        "mongodb": await _check_mongodb(request),
        "redis": await _check_redis(request),
    }

    if checks["mongodb"] != "ok":
        status = "unhealthy"
    elif checks["redis"] != "ok":
        status = "degraded"
    else:
        status = "healthy"

    body = HealthResponse(
        status=status,
        checks=checks,
        server_time=utcnow(),
        response_time_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return JSONResponse(
        status_code=503 if status == "unhealthy" else 200,
        content=body.model_dump(mode="json"),
    )

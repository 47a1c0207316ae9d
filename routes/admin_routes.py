"""
Admin endpoints, guarded by bearer keys from AdminSettings.

POST /api/admin/cleanup-verification  — run the cleanup job
GET  /api/admin/cleanup-verification  — cleanup candidates, read-only
GET  /api/admin/security-analytics    — ?action=analytics|status&timeframe=1h|24h|7d|30d
POST /api/admin/security-analytics    — record a custom security event
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query

from dependencies import (
    get_cleanup_service,
    get_security_analytics_service,
    get_security_event_logger,
    require_analytics_key,
    require_cleanup_key,
)
from errors import ValidationError
from schemas.dto.requests.admin import SecurityEventRequest
from schemas.dto.responses.admin import (
    AnalyticsResponse,
    CleanupResponse,
    CleanupStatusResponse,
    SecurityStatusResponse,
    Timeframe,
)
from schemas.dto.responses.common import MessageResponse
from services.cleanup_service import CleanupService
from services.security_analytics_service import SecurityAnalyticsService
from services.security_events import SecurityEventLogger
from shared.datetime_utils import utcnow
from shared.logging import get_logger

router = APIRouter(prefix="/api/admin", tags=["admin"])
log = get_logger(__name__)


@router.post(
    "/cleanup-verification",
    response_model=CleanupResponse,
    dependencies=[Depends(require_cleanup_key)],
)
async def run_cleanup(
    service: CleanupService = Depends(get_cleanup_service),
) -> CleanupResponse:
    stats = await service.cleanup()
    return CleanupResponse(
        message="Verification records cleanup completed successfully",
        stats=stats,
        cleanup_time=utcnow(),
    )


@router.get(
    "/cleanup-verification",
    response_model=CleanupStatusResponse,
    dependencies=[Depends(require_cleanup_key)],
)
async def cleanup_status(
    service: CleanupService = Depends(get_cleanup_service),
) -> CleanupStatusResponse:
    summary = await service.status()
    return CleanupStatusResponse(summary=summary, last_checked=utcnow())


@router.get(
    "/security-analytics",
    dependencies=[Depends(require_analytics_key)],
)
async def security_analytics(
    action: Literal["analytics", "status"] = Query(default="analytics"),
    timeframe: Timeframe = Query(default="24h"),
    service: SecurityAnalyticsService = Depends(get_security_analytics_service),
):
    if action == "status":
        status = await service.status()
        return SecurityStatusResponse(**status.model_dump(), timestamp=utcnow())

    analytics = await service.generate(timeframe)
    return AnalyticsResponse(data=analytics, generated_at=utcnow())


@router.post(
    "/security-analytics",
    response_model=MessageResponse,
    dependencies=[Depends(require_analytics_key)],
)
async def log_security_event(
    body: SecurityEventRequest,
    events: SecurityEventLogger = Depends(get_security_event_logger),
) -> MessageResponse:
    if body.event_type is None:
        raise ValidationError("eventType is required", field="eventType")

    details = body.details
    written = await events.log_event(
        body.event_type,
        email=details.email if details else None,
        ip=details.ip if details else None,
        user_agent=details.user_agent if details else None,
        metadata=details.metadata if details else None,
    )
    if not written:
        raise RuntimeError("security event could not be stored")

    log.info("custom_security_event_logged", event_type=body.event_type.value)
    return MessageResponse(success=True, message="Security event logged successfully")

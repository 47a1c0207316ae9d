"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Tests swap services out through
app.dependency_overrides.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from config import AppSettings
from errors import AuthenticationError, RateLimitError
from infrastructure.rate_limiter import RateLimiter
from repositories import security_event_repository, user_repository, verification_repository
from repositories.security_event_repository import SecurityEventRepository
from repositories.user_repository import UserRepository
from repositories.verification_repository import VerificationRepository
from services.cleanup_service import CleanupService
from services.code_request_service import CodeRequestService
from services.security_analytics_service import SecurityAnalyticsService
from services.security_events import SecurityEventLogger
from services.verification_service import ClientContext, VerificationService
from shared.crypto import bearer_matches
from shared.ip_utils import get_client_ip, get_user_agent
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)

_VERIFY_RATE_LIMIT_SCOPE = "verify_code"


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


async def get_db(request: Request):
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


async def get_redis(request: Request):
    """Return the async Redis client from app.state (may be None if not configured)."""
    return request.app.state.redis


def get_client_context(request: Request) -> ClientContext:
    return ClientContext(ip=get_client_ip(request), user_agent=get_user_agent(request))


# ── Repositories and services ─────────────────────────────────────────────────


def get_verification_repository(db=Depends(get_db)) -> VerificationRepository:
    return VerificationRepository(db[verification_repository.COLLECTION_NAME])


def get_security_event_logger(db=Depends(get_db)) -> SecurityEventLogger:
    return SecurityEventLogger(
        SecurityEventRepository(db[security_event_repository.COLLECTION_NAME])
    )


def get_rate_limiter(redis=Depends(get_redis)) -> RateLimiter:
    return RateLimiter(redis)


def get_verification_service(
    settings: AppSettings = Depends(get_settings),
    repository: VerificationRepository = Depends(get_verification_repository),
    events: SecurityEventLogger = Depends(get_security_event_logger),
) -> VerificationService:
    return VerificationService(
        repository,
        events,
        secret_key=settings.secret_key,
        token_ttl_seconds=settings.verification.token_ttl_seconds,
    )


def get_code_request_service(
    request: Request,
    settings: AppSettings = Depends(get_settings),
    db=Depends(get_db),
    repository: VerificationRepository = Depends(get_verification_repository),
    events: SecurityEventLogger = Depends(get_security_event_logger),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> CodeRequestService:
    return CodeRequestService(
        verifications=repository,
        users=UserRepository(db[user_repository.COLLECTION_NAME]),
        events=events,
        email_provider=request.app.state.email_provider,
        rate_limiter=limiter,
        settings=settings.verification,
    )


def get_cleanup_service(
    repository: VerificationRepository = Depends(get_verification_repository),
) -> CleanupService:
    return CleanupService(repository)


def get_security_analytics_service(
    repository: VerificationRepository = Depends(get_verification_repository),
) -> SecurityAnalyticsService:
    return SecurityAnalyticsService(repository)


# ── Guards ────────────────────────────────────────────────────────────────────


async def limit_verify_requests(
    settings: AppSettings = Depends(get_settings),
    limiter: RateLimiter = Depends(get_rate_limiter),
    client: ClientContext = Depends(get_client_context),
) -> None:
    """Per-IP request limit for the verify endpoint, shared across instances."""
    decision = await limiter.hit(
        _VERIFY_RATE_LIMIT_SCOPE,
        client.ip,
        settings.verification.verify_requests_per_minute,
        60,
    )
    if not decision.allowed:
        log.warning("verify_rate_limited", ip_hash=hash_ip(client.ip))
        raise RateLimitError(
            "Too many requests. Please try again later.",
            retry_after=decision.retry_after,
        )


def _require_admin_key(authorization: Optional[str], expected_key: str, scope: str) -> None:
    if not bearer_matches(authorization, expected_key):
        log.warning("admin_auth_failed", scope=scope, configured=bool(expected_key))
        raise AuthenticationError("Unauthorized - Admin access required")


def require_cleanup_key(
    authorization: Optional[str] = Header(default=None),
    settings: AppSettings = Depends(get_settings),
) -> None:
    _require_admin_key(authorization, settings.admin.admin_cleanup_key, "cleanup")


def require_analytics_key(
    authorization: Optional[str] = Header(default=None),
    settings: AppSettings = Depends(get_settings),
) -> None:
    _require_admin_key(authorization, settings.admin.admin_analytics_key, "analytics")

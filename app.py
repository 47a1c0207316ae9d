"""
Application factory for the verification service.

create_app() wires settings, logging, Sentry, the Mongo/Redis/HTTP clients
(opened in the lifespan) and the routers.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.cache.redis_client import create_redis_client
from infrastructure.email.zeptomail import ZeptoMailProvider
from middleware.request_logging import RequestLoggingMiddleware
from repositories.indexes import ensure_indexes
from routes.admin_routes import router as admin_router
from routes.health_routes import router as health_router
from routes.verification_routes import router as verification_router
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)

_EMAIL_API_TIMEOUT_SECONDS = 5.0


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Build the app; *settings* defaults to reading the environment."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, production=settings.is_production)

    # Sentry first, so lifespan failures are reported
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
            environment=settings.env,
        )

    if not settings.secret_key:
        log.warning("secret_key_not_configured")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        app.state.mongo_client = mongo_client
        app.state.db = mongo_client[settings.db.db_name]
        app.state.settings = settings

        # Redis is optional; without it the rate limiter lets requests through
        app.state.redis = await create_redis_client(settings.redis)

        http_client = httpx.AsyncClient(
            timeout=_EMAIL_API_TIMEOUT_SECONDS,
            headers={"User-Agent": settings.app_name},
        )
        app.state.http_client = http_client
        app.state.email_provider = ZeptoMailProvider(
            settings=settings.email,
            http_client=http_client,
            app_name=settings.app_name,
            app_url=settings.app_url,
        )

        await ensure_indexes(app.state.db)
        log.info("app_started", env=settings.env, db_name=settings.db.db_name)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await http_client.aclose()
        await mongo_client.close()
        if app.state.redis is not None:
            await app.state.redis.aclose()
        log.info("app_stopped")

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(verification_router)
    app.include_router(admin_router)

    return app

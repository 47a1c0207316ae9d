"""Integration tests for GET /health."""

from contextlib import asynccontextmanager
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from errors import register_error_handlers
from routes.health_routes import router as health_router


def _build_test_app(mongo_error: Optional[Exception], redis) -> FastAPI:
    """Minimal app whose lifespan installs mocked MongoDB and Redis handles."""
    mock_db = MagicMock()
    mock_db.client.admin.command = AsyncMock(
        return_value={"ok": 1}, side_effect=mongo_error
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.db = mock_db
        app.state.redis = redis
        yield

    app = FastAPI(lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(health_router)
    return app


def _redis(ping_error: Optional[Exception] = None):
    redis = AsyncMock()
    redis.ping = AsyncMock(return_value=True, side_effect=ping_error)
    return redis


@pytest.mark.parametrize(
    "mongo_error, redis, status_code, status, checks",
    [
        (None, _redis(), 200, "healthy", {"mongodb": "ok", "redis": "ok"}),
        (
            ConnectionError("refused"),
            _redis(),
            503,
            "unhealthy",
            {"mongodb": "error", "redis": "ok"},
        ),
        (
            None,
            _redis(ConnectionError("redis down")),
            200,
            "degraded",
            {"mongodb": "ok", "redis": "error"},
        ),
        (None, None, 200, "degraded", {"mongodb": "ok", "redis": "not_configured"}),
        (
            ConnectionError("refused"),
            None,
            503,
            "unhealthy",
            {"mongodb": "error", "redis": "not_configured"},
        ),
    ],
    ids=["all_ok", "mongo_down", "redis_down", "redis_absent", "both_missing"],
)
def test_health_status(mongo_error, redis, status_code, status, checks):
    with TestClient(_build_test_app(mongo_error, redis)) as client:
        resp = client.get("/health")
    assert resp.status_code == status_code
    body = resp.json()
    assert body["status"] == status
    assert body["checks"] == checks


def test_reports_server_time_and_latency():
    with TestClient(_build_test_app(None, _redis())) as client:
        body = client.get("/health").json()
    assert body["server_time"].startswith("20")
    assert body["response_time_ms"] >= 0

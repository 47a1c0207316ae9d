"""
Response bodies shared by several routers.

ErrorResponse is the shape AppError.to_dict() produces; it is declared
here so the OpenAPI schema documents error statuses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel

CheckStatus = Literal["ok", "error", "not_configured"]


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str
    field: Optional[str] = None
    details: Optional[Any] = None
    retry_after: Optional[int] = None


class HealthResponse(BaseModel):
    """GET /health. ``status`` is healthy, degraded or unhealthy."""

    status: Literal["healthy", "degraded", "unhealthy"]
    checks: dict[str, CheckStatus]
    server_time: datetime
    response_time_ms: float


class MessageResponse(BaseModel):
    success: bool
    message: Optional[str] = None

"""
Request DTOs for admin endpoints.

SecurityEventRequest — POST /api/admin/security-analytics
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.security_event import SecurityEventType


class SecurityEventDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    metadata: dict[str, Any] = Field(default_factory=dict)


class SecurityEventRequest(BaseModel):
    """Request body for logging a custom security event."""

    model_config = ConfigDict(populate_by_name=True)

    event_type: Optional[SecurityEventType] = Field(default=None, alias="eventType")
    details: Optional[SecurityEventDetails] = None

"""
Security event document model.

Maps to the `security-events` MongoDB collection. Written best-effort by
SecurityEventLogger; read by the analytics dashboard.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel


class SecurityEventType(str, Enum):
    VERIFICATION_REQUEST = "verification_request"
    VERIFICATION_SUCCESS = "verification_success"
    VERIFICATION_FAILURE = "verification_failure"
    RATE_LIMIT_HIT = "rate_limit_hit"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"


class SecurityEventDoc(MongoBaseModel):
    """Document model for the `security-events` collection."""

    event_type: SecurityEventType
    email: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    processed: bool = False

    def to_mongo(self, *, include_id: bool = True) -> dict:
        data = super().to_mongo(include_id=include_id)
        data["event_type"] = self.event_type.value
        return data

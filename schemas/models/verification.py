"""
Pre-signup verification record document model.

Maps to the `pre-signup-verifications` MongoDB collection.

One record per email address: requesting a new code replaces the old
record. failed_attempts counts mismatches and is reset to 0 on success;
verified flips to True exactly once.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel


class VerificationRecordDoc(MongoBaseModel):
    """Document model for the `pre-signup-verifications` collection."""

    email: str
    code: str
    name: Optional[str] = None
    client_ip: Optional[str] = None
    created_at: datetime
    expires_at: datetime
    verified: bool = False
    verified_at: Optional[datetime] = None
    failed_attempts: int = Field(default=0, ge=0)
    last_attempt_at: Optional[datetime] = None

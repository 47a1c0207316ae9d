"""
Response DTOs for admin endpoints.

CleanupStats, CleanupResponse: POST /api/admin/cleanup-verification
CleanupSummary, CleanupStatusResponse: GET /api/admin/cleanup-verification
SecurityAnalytics, AnalyticsResponse: GET /api/admin/security-analytics?action=analytics
SecurityStatus, SecurityStatusResponse: GET /api/admin/security-analytics?action=status
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Timeframe = Literal["1h", "24h", "7d", "30d"]
AlertType = Literal["suspicious_ip", "repeated_failures", "rapid_requests", "fake_email_pattern"]
AlertSeverity = Literal["low", "medium", "high", "critical"]


# ── Cleanup ───────────────────────────────────────────────────────────────────


class CleanupStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    expired_records: int = 0
    old_unverified_records: int = 0
    suspicious_records: int = 0
    total_cleaned: int = 0
    total_before: int = 0
    total_after: int = 0
    db_size_before_mb: float = 0.0
    db_size_after_mb: float = 0.0


class CleanupResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    stats: CleanupStats
    cleanup_time: datetime


class CleanupCandidates(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    expired: int
    old_unverified: int
    suspicious: int
    # Sum of the three counters; a record matching two predicates counts twice
    total: int
    # Records matching at least one predicate
    distinct_total: int


class CleanupSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_records: int
    database_size_mb: float
    cleanup_candidates: CleanupCandidates
    recent_successful_verifications: int


class CleanupStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    summary: CleanupSummary
    last_checked: datetime


# ── Security analytics ────────────────────────────────────────────────────────


class SecurityAlert(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: AlertType
    severity: AlertSeverity
    details: str
    ip: Optional[str] = None
    email: Optional[str] = None
    count: Optional[int] = None
    timestamp: Optional[datetime] = None


class FailedEmailEntry(BaseModel):
    email: str
    count: int


class IpEntry(BaseModel):
    ip: str
    requests: int
    success: int


class AnalyticsTrends(BaseModel):
    success_rate: float
    average_attempts_per_verification: float
    peak_hour: int


class SecurityAnalytics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timeframe: Timeframe
    total_requests: int
    successful_verifications: int
    failed_attempts: int
    unique_ips: int
    unique_emails: int
    blocked_requests: int
    top_failed_emails: list[FailedEmailEntry] = Field(default_factory=list)
    top_ips: list[IpEntry] = Field(default_factory=list)
    alerts: list[SecurityAlert] = Field(default_factory=list)
    trends: AnalyticsTrends


class AnalyticsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: SecurityAnalytics
    generated_at: datetime


class SecurityStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["green", "yellow", "red"]
    alerts: list[SecurityAlert] = Field(default_factory=list)
    summary: str


class SecurityStatusResponse(SecurityStatus):
    success: bool = True
    timestamp: datetime

"""
Security analytics over pre-signup verification records.

generate() aggregates the records created inside a timeframe into totals,
top offenders, alerts and trends. status() condenses the last hour into a
traffic-light summary for the admin dashboard.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable

from repositories.verification_repository import VerificationRepository
from schemas.dto.responses.admin import (
    AnalyticsTrends,
    FailedEmailEntry,
    IpEntry,
    SecurityAlert,
    SecurityAnalytics,
    SecurityStatus,
    Timeframe,
)
from schemas.models.verification import VerificationRecordDoc
from services.lockout_policy import MAX_FAILED_ATTEMPTS
from shared.datetime_utils import as_utc, utcnow
from shared.logging import get_logger
from shared.validators import matches_suspicious_pattern

log = get_logger(__name__)

TIMEFRAMES: dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}

REPEATED_FAILURE_ALERT_AT = 8
CRITICAL_FAILURE_ALERT_AT = 15
SUSPICIOUS_IP_REQUESTS = 20
MIN_FAILED_ATTEMPTS_FOR_TOP_LIST = 3
TOP_N = 10
HEALTHY_SUCCESS_RATE = 70.0


def _alerts_for_record(record: VerificationRecordDoc) -> list[SecurityAlert]:
    alerts: list[SecurityAlert] = []
    if record.failed_attempts >= REPEATED_FAILURE_ALERT_AT:
        alerts.append(
            SecurityAlert(
                type="repeated_failures",
                severity=(
                    "critical"
                    if record.failed_attempts >= CRITICAL_FAILURE_ALERT_AT
                    else "high"
                ),
                details=(
                    f"Email {record.email} has {record.failed_attempts} "
                    "failed verification attempts"
                ),
                email=record.email,
                count=record.failed_attempts,
                timestamp=record.last_attempt_at or record.created_at,
            )
        )
    if matches_suspicious_pattern(record.email):
        alerts.append(
            SecurityAlert(
                type="fake_email_pattern",
                severity="medium",
                details=f"Suspicious email pattern detected: {record.email}",
                email=record.email,
                ip=record.client_ip,
                timestamp=record.created_at,
            )
        )
    return alerts


class SecurityAnalyticsService:
    def __init__(
        self,
        repository: VerificationRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repo = repository
        self._clock = clock

    async def generate(self, timeframe: Timeframe = "24h") -> SecurityAnalytics:
        now = self._clock()
        since = now - TIMEFRAMES[timeframe]

        total_requests = await self._repo.count_created_since(since)
        successful = await self._repo.count_verified_since(since)

        ip_requests: dict[str, int] = defaultdict(int)
        ip_success: dict[str, int] = defaultdict(int)
        email_failures: dict[str, int] = defaultdict(int)
        verified_emails: set[str] = set()
        hourly = [0] * 24
        alerts: list[SecurityAlert] = []
        total_failed = 0
        blocked = 0

        async for record in self._repo.iter_created_since(since):
            ip = record.client_ip or "unknown"
            ip_requests[ip] += 1
            if record.verified:
                ip_success[ip] += 1
                verified_emails.add(record.email)
            email_failures[record.email] += record.failed_attempts

            total_failed += record.failed_attempts
            if record.failed_attempts >= MAX_FAILED_ATTEMPTS:
                blocked += 1
            hourly[as_utc(record.created_at).hour] += 1
            alerts.extend(_alerts_for_record(record))

        for ip, requests in ip_requests.items():
            if requests >= SUSPICIOUS_IP_REQUESTS and ip_success[ip] == 0:
                alerts.append(
                    SecurityAlert(
                        type="suspicious_ip",
                        severity="high",
                        details=(
                            f"IP {ip} made {requests} requests with 0 "
                            "successful verifications"
                        ),
                        ip=ip,
                        count=requests,
                        timestamp=now,
                    )
                )

        top_failed = sorted(
            (
                (email, failures)
                for email, failures in email_failures.items()
                if email not in verified_emails
                and failures >= MIN_FAILED_ATTEMPTS_FOR_TOP_LIST
            ),
            key=lambda item: item[1],
            reverse=True,
        )[:TOP_N]
        top_ips = sorted(ip_requests.items(), key=lambda item: item[1], reverse=True)[:TOP_N]

        success_rate = successful / total_requests * 100 if total_requests else 0.0
        avg_attempts = total_failed / successful if successful else 0.0

        return SecurityAnalytics(
            timeframe=timeframe,
            total_requests=total_requests,
            successful_verifications=successful,
            failed_attempts=total_failed,
            unique_ips=len(ip_requests),
            unique_emails=len(email_failures),
            blocked_requests=blocked,
            top_failed_emails=[
                FailedEmailEntry(email=email, count=count) for email, count in top_failed
            ],
            top_ips=[
                IpEntry(ip=ip, requests=requests, success=ip_success[ip])
                for ip, requests in top_ips
            ],
            alerts=alerts,
            trends=AnalyticsTrends(
                success_rate=round(success_rate, 2),
                average_attempts_per_verification=round(avg_attempts, 2),
                peak_hour=hourly.index(max(hourly)),
            ),
        )

    async def status(self) -> SecurityStatus:
        try:
            analytics = await self.generate("1h")
        except Exception as e:
            log.error(
                "security_status_failed", error=str(e), error_type=type(e).__name__
            )
            return SecurityStatus(
                status="red",
                alerts=[
                    SecurityAlert(
                        type="suspicious_ip",
                        severity="critical",
                        details="Security monitoring system error",
                        timestamp=self._clock(),
                    )
                ],
                summary="Security monitoring unavailable",
            )

        critical = [a for a in analytics.alerts if a.severity == "critical"]
        high = [a for a in analytics.alerts if a.severity == "high"]
        success_rate = analytics.trends.success_rate
        # An idle hour has no success rate worth alerting on
        low_success = (
            analytics.total_requests > 0 and success_rate < HEALTHY_SUCCESS_RATE
        )

        if critical:
            status, summary = "red", f"{len(critical)} critical security alerts detected"
        elif high or low_success:
            status = "yellow"
            summary = f"{len(high)} high priority alerts, {success_rate}% success rate"
        elif analytics.total_requests:
            status, summary = "green", f"System healthy, {success_rate}% success rate"
        else:
            status, summary = "green", "All systems normal"

        return SecurityStatus(status=status, alerts=critical + high, summary=summary)

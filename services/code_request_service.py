"""
Code request flow: validates the email, applies abuse limits, stores a
fresh record and emails the code.

A new request replaces any existing record for the email, which also
clears its failed-attempt counter and lockout.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from config import VerificationSettings
from errors import ConflictError, EmailDeliveryError, RateLimitError, ValidationError
from infrastructure.email.protocol import EmailProvider
from infrastructure.rate_limiter import RateLimiter
from repositories.user_repository import UserRepository
from repositories.verification_repository import VerificationRepository
from schemas.models.security_event import SecurityEventType
from schemas.models.verification import VerificationRecordDoc
from services.security_events import SecurityEventLogger
from services.verification_service import ClientContext
from shared.crypto import generate_verification_code
from shared.datetime_utils import utcnow
from shared.logging import get_logger, hash_ip
from shared.validators import (
    detect_fake_email,
    normalize_email,
    validate_email_domain,
    validate_email_format,
)

log = get_logger(__name__)

_EMAIL_RATE_LIMIT_SCOPE = "code_request_email"
_EMAIL_RATE_LIMIT_WINDOW_SECONDS = 3600


@dataclass(frozen=True)
class CodeRequestResult:
    email: str
    expires_in_minutes: int


class CodeRequestService:
    def __init__(
        self,
        verifications: VerificationRepository,
        users: UserRepository,
        events: SecurityEventLogger,
        email_provider: EmailProvider,
        rate_limiter: RateLimiter,
        settings: VerificationSettings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._verifications = verifications
        self._users = users
        self._events = events
        self._email = email_provider
        self._limiter = rate_limiter
        self._settings = settings
        self._clock = clock

    async def request_code(
        self, email: Optional[str], name: Optional[str], client: ClientContext
    ) -> CodeRequestResult:
        now = self._clock()
        await self._purge_expired(now)

        email = normalize_email(email)
        name = (name or "").strip()
        if not email or not name:
            raise ValidationError("Email and name are required")

        await self._check_ip_limits(email, client, now)

        if not validate_email_format(email):
            raise ValidationError("Invalid email format", field="email")

        if not validate_email_domain(email, self._settings.allowed_email_domains):
            allowed = ", ".join(self._settings.allowed_email_domains)
            raise ValidationError(
                f"Only addresses at {allowed} are supported", field="email"
            )

        fake_reason = detect_fake_email(email)
        if fake_reason is not None:
            log.warning("fake_email_blocked", email=email, reason=fake_reason)
            await self._events.log_event(
                SecurityEventType.SUSPICIOUS_ACTIVITY,
                email=email,
                ip=client.ip,
                user_agent=client.user_agent,
                metadata={"reason": "fake_email_blocked", "pattern": fake_reason},
            )
            raise ValidationError(
                "This email address does not look deliverable.",
                field="email",
                details="Please enter an address you can access.",
            )

        if await self._users.exists_by_email(email):
            raise ConflictError("User already exists with this email", field="email")

        decision = await self._limiter.hit(
            _EMAIL_RATE_LIMIT_SCOPE,
            email,
            self._settings.email_hourly_limit,
            _EMAIL_RATE_LIMIT_WINDOW_SECONDS,
        )
        if not decision.allowed:
            log.warning("code_request_email_rate_limited", email=email)
            raise RateLimitError(
                "Too many verification codes requested. "
                "Please wait an hour before requesting another code.",
                retry_after=decision.retry_after,
            )

        code = generate_verification_code(self._settings.code_length)
        record = VerificationRecordDoc(
            email=email,
            code=code,
            name=name,
            client_ip=client.ip,
            created_at=now,
            expires_at=now + timedelta(seconds=self._settings.code_ttl_seconds),
        )
        await self._verifications.replace_for_email(record)

        expires_in_minutes = self._settings.code_ttl_seconds // 60
        sent = await self._email.send_verification_code_email(
            email, name, code, expires_in_minutes
        )
        if not sent:
            await self._verifications.delete_for_email(email, code)
            log.error("verification_code_delivery_failed", email=email)
            raise EmailDeliveryError(
                "Failed to send verification code",
                details="Please double-check that your email address is correct "
                "and can receive emails.",
            )

        log.info("verification_code_sent", email=email, ip_hash=hash_ip(client.ip))
        await self._events.log_event(
            SecurityEventType.VERIFICATION_REQUEST,
            email=email,
            ip=client.ip,
            user_agent=client.user_agent,
            metadata={"success": True},
        )
        return CodeRequestResult(email=email, expires_in_minutes=expires_in_minutes)

    async def _purge_expired(self, now: datetime) -> None:
        try:
            deleted = await self._verifications.delete_expired(now)
        except Exception as e:
            log.warning(
                "expired_record_purge_failed", error=str(e), error_type=type(e).__name__
            )
            return
        if deleted:
            log.info("expired_records_purged", deleted=deleted)

    async def _check_ip_limits(
        self, email: str, client: ClientContext, now: datetime
    ) -> None:
        try:
            hourly = await self._verifications.count_by_ip_since(
                client.ip, now - timedelta(hours=1)
            )
            burst = await self._verifications.count_by_ip_since(
                client.ip,
                now - timedelta(minutes=self._settings.ip_burst_window_minutes),
            )
        except Exception as e:
            # Fail open; the per-email limit and the Gate still apply
            log.warning(
                "ip_rate_limit_check_failed", error=str(e), error_type=type(e).__name__
            )
            return

        reason = None
        retry_after = None
        if hourly >= self._settings.ip_hourly_limit:
            reason = (
                "Too many verification requests from this IP address. "
                "Please wait an hour before trying again."
            )
            retry_after = 3600
        elif burst >= self._settings.ip_burst_limit:
            reason = (
                "Too many rapid verification requests. Please wait "
                f"{self._settings.ip_burst_window_minutes} minutes before trying again."
            )
            retry_after = self._settings.ip_burst_window_minutes * 60

        if reason is None:
            return

        log.warning("code_request_ip_rate_limited", ip_hash=hash_ip(client.ip))
        await self._events.log_event(
            SecurityEventType.RATE_LIMIT_HIT,
            email=email,
            ip=client.ip,
            user_agent=client.user_agent,
            metadata={"reason": reason},
        )
        raise RateLimitError(reason, retry_after=retry_after)

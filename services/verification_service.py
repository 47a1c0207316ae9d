"""
Verification Gate: checks a submitted code against the email's record.

verify() walks a fixed sequence of checks and returns the first outcome
that applies:

    INVALID_INPUT        empty email or code, nothing read
    NOT_FOUND_OR_EXPIRED no record whose expires_at is in the future
    LOCKED               failed_attempts >= 10, nothing written
    TOO_SOON             progressive delay still running, nothing written
    MISMATCH             failed_attempts += 1, last_attempt_at = now
    ALREADY_USED         correct code on a verified record, nothing written
    SUCCESS              verified = True, failed_attempts reset to 0

Each path performs at most one write. Store errors propagate to the
caller; audit-event failures never do.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from repositories.verification_repository import VerificationRepository
from schemas.models.security_event import SecurityEventType
from services import lockout_policy
from services.security_events import SecurityEventLogger
from shared.crypto import codes_match, issue_verification_token
from shared.datetime_utils import utcnow
from shared.logging import get_logger, hash_ip, log_with_context
from shared.validators import normalize_email

logger = get_logger(__name__)

DEFAULT_DISPLAY_NAME = "User"


class VerificationOutcome(str, Enum):
    SUCCESS = "success"
    INVALID_INPUT = "invalid_input"
    NOT_FOUND_OR_EXPIRED = "not_found_or_expired"
    LOCKED = "locked"
    TOO_SOON = "too_soon"
    MISMATCH = "mismatch"
    ALREADY_USED = "already_used"


@dataclass(frozen=True)
class ClientContext:
    """Request metadata used for audit logging only."""

    ip: str = "unknown"
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class VerificationResult:
    outcome: VerificationOutcome
    message: str
    email: Optional[str] = None
    name: Optional[str] = None
    verification_token: Optional[str] = None
    retry_after: Optional[int] = None
    attempts_remaining: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.outcome is VerificationOutcome.SUCCESS


class VerificationService:
    def __init__(
        self,
        repository: VerificationRepository,
        events: SecurityEventLogger,
        secret_key: str,
        token_ttl_seconds: int = 900,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repo = repository
        self._events = events
        self._secret_key = secret_key
        self._token_ttl_seconds = token_ttl_seconds
        self._clock = clock

    async def verify(
        self, email: Optional[str], code: Optional[str], client: ClientContext
    ) -> VerificationResult:
        email = normalize_email(email)
        code = (code or "").strip()
        if not email or not code:
            return VerificationResult(
                VerificationOutcome.INVALID_INPUT,
                "Email and verification code are required",
            )

        log = log_with_context(logger, email=email, ip_hash=hash_ip(client.ip))
        now = self._clock()

        record = await self._repo.find_active(email, now)
        if record is None:
            log.info("verification_record_not_found")
            return VerificationResult(
                VerificationOutcome.NOT_FOUND_OR_EXPIRED,
                "No verification code found or code has expired. "
                "Please request a new code.",
            )

        if lockout_policy.is_locked(record.failed_attempts):
            log.warning("verification_locked", failed_attempts=record.failed_attempts)
            return VerificationResult(
                VerificationOutcome.LOCKED,
                "Too many failed attempts. Please request a new verification code.",
            )

        wait = lockout_policy.remaining_wait_seconds(
            record.failed_attempts, record.last_attempt_at, now
        )
        if wait > 0:
            log.info("verification_delay_in_effect", retry_after=wait)
            return VerificationResult(
                VerificationOutcome.TOO_SOON,
                f"Please wait {wait} seconds before trying again.",
                retry_after=wait,
            )

        if not codes_match(code, record.code):
            return await self._handle_mismatch(email, client, now, log)

        if record.verified:
            return VerificationResult(
                VerificationOutcome.ALREADY_USED,
                "This verification code has already been used.",
            )

        if not await self._repo.mark_verified(email, now):
            # Either a concurrent request verified it, or it was purged or expired
            if await self._repo.find_active(email, now) is None:
                log.info("verification_record_vanished")
                return VerificationResult(
                    VerificationOutcome.NOT_FOUND_OR_EXPIRED,
                    "No verification code found or code has expired. "
                    "Please request a new code.",
                )
            log.warning("verification_lost_race")
            return VerificationResult(
                VerificationOutcome.ALREADY_USED,
                "This verification code has already been used.",
            )

        log.info("verification_success", previous_failed_attempts=record.failed_attempts)
        await self._events.log_event(
            SecurityEventType.VERIFICATION_SUCCESS,
            email=email,
            ip=client.ip,
            user_agent=client.user_agent,
            metadata={"previous_failed_attempts": record.failed_attempts},
        )

        return VerificationResult(
            VerificationOutcome.SUCCESS,
            "Email verified successfully! You can now complete your registration.",
            email=email,
            name=record.name or DEFAULT_DISPLAY_NAME,
            verification_token=issue_verification_token(
                email, self._secret_key, self._token_ttl_seconds, now
            ),
        )

    async def _handle_mismatch(
        self, email: str, client: ClientContext, now: datetime, log
    ) -> VerificationResult:
        updated = await self._repo.record_failed_attempt(email, now)
        if updated is None:
            log.info("verification_record_vanished")
            return VerificationResult(
                VerificationOutcome.NOT_FOUND_OR_EXPIRED,
                "No verification code found or code has expired. "
                "Please request a new code.",
            )

        failed_attempts = updated.failed_attempts
        log.warning("verification_failure", failed_attempts=failed_attempts)
        await self._events.log_event(
            SecurityEventType.VERIFICATION_FAILURE,
            email=email,
            ip=client.ip,
            user_agent=client.user_agent,
            metadata={"failed_attempts": failed_attempts},
        )

        return VerificationResult(
            VerificationOutcome.MISMATCH,
            "Invalid verification code. Please check and try again.",
            attempts_remaining=lockout_policy.attempts_remaining(failed_attempts),
        )

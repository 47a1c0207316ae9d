"""
Security event sink.

Best-effort writer for the `security-events` collection. A failure to
record an event is logged and swallowed; it must never change the
outcome of the request that produced it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

from repositories.security_event_repository import SecurityEventRepository
from schemas.models.security_event import SecurityEventDoc, SecurityEventType
from shared.datetime_utils import utcnow
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


class SecurityEventLogger:
    def __init__(
        self,
        repository: SecurityEventRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repo = repository
        self._clock = clock

    async def log_event(
        self,
        event_type: SecurityEventType,
        *,
        email: Optional[str] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Record one event. Returns False when the write failed."""
        try:
            event = SecurityEventDoc(
                event_type=event_type,
                email=email,
                ip=ip,
                user_agent=user_agent,
                metadata=metadata or {},
                timestamp=self._clock(),
            )
            await self._repo.insert(event)
            return True
        except Exception as e:
            log.error(
                "security_event_write_failed",
                event_type=event_type.value,
                ip_hash=hash_ip(ip),
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

"""
structlog setup for the verification service.

JSON lines in production and a coloured console in development. Client IPs
are hashed in production and secret-looking keys such as codes and tokens are
masked before rendering.
"""

from __future__ import annotations

import hashlib
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

import structlog
from structlog.types import EventDict, Processor

from config import LoggingSettings

# Flipped by setup_logging(); read by hash_ip()
_hash_ips = False

# Exact key names that are always masked
REDACTED_FIELDS = {
    "password",
    "token",
    "verification_token",
    "authorization",
    "cookie",
    "secret",
    "key",
    "code",
}

# Keys that are safe even though they contain a sensitive substring
_SAFE_KEYS = {"level", "event", "timestamp", "logger", "error_code", "status_code"}


def hash_ip(ip_address: str) -> str:
    """Return a 16-char SHA-256 prefix of *ip_address* once production
    logging is on, the address unchanged otherwise."""
    if _hash_ips and ip_address:
        return hashlib.sha256(ip_address.encode()).hexdigest()[:16]
    return ip_address


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp the event with the current UTC time (ISO 8601)."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask values whose key names a secret or a verification code."""
    for key in list(event_dict.keys()):
        if key in _SAFE_KEYS:
            continue
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(
            sensitive in lowered for sensitive in ("password", "token", "key", "secret")
        ):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str) -> None:
    """Install the processor chain, ending in JSON or console rendering."""
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True, pad_event=15, sort_keys=False)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str) -> None:
    """Route stdlib logging to stdout and quiet noisy third-party loggers."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def setup_logging(
    settings: Optional[LoggingSettings] = None, *, production: bool = False
) -> None:
    """Configure stdlib logging and structlog.

    Called once from create_app() before anything else logs. *production*
    switches IP hashing on.
    """
    global _hash_ips

    if settings is None:
        settings = LoggingSettings()

    _hash_ips = production
    configure_stdlib_logging(settings.log_level)
    configure_structlog(settings.log_format)

    structlog.get_logger(__name__).info(
        "logging_initialized",
        log_level=settings.log_level,
        log_format=settings.log_format,
        production=production,
    )

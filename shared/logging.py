"""
Logger factory and helpers.

Provides:
- get_logger(): Get a configured logger instance
- hash_ip(): Hash IP addresses for privacy (None-safe)
- log_with_context(): Bind common fields to a logger
"""

from __future__ import annotations

from typing import Optional

import structlog
from structlog.stdlib import BoundLogger

from shared.logging_config import hash_ip as _hash_ip
from shared.logging_config import setup_logging


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("verification_success", email="a@b.com")
    """
    return structlog.get_logger(name)


def hash_ip(ip_address: Optional[str]) -> Optional[str]:
    """Hash *ip_address* in production; pass it through in development."""
    if ip_address is None:
        return None
    return _hash_ip(ip_address)


def log_with_context(logger: BoundLogger, **context) -> BoundLogger:
    """Bind context to a logger for all subsequent log calls."""
    return logger.bind(**context)


__all__ = ["get_logger", "hash_ip", "log_with_context", "setup_logging"]

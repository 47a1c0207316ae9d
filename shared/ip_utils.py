"""
Client metadata for audit logging and per-IP rate limits.

The service runs behind Cloudflare and nginx, so the peer address is
usually a proxy. Forwarding headers are trusted in the order below and the
socket peer is the last resort.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

# Highest priority first; X-Forwarded-For contributes its left-most hop
FORWARDING_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
)
UNKNOWN_IP = "unknown"
USER_AGENT_MAX_LENGTH = 256


def _first_hop(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.split(",", 1)[0].strip() or None


def get_client_ip(request: Request) -> str:
    """Best-effort originating IP for *request*, ``"unknown"`` if none."""
    for header in FORWARDING_HEADERS:
        ip = _first_hop(request.headers.get(header))
        if ip:
            return ip
    if request.client is not None and request.client.host:
        return request.client.host
    return UNKNOWN_IP


def get_user_agent(request: Request) -> Optional[str]:
    user_agent = request.headers.get("User-Agent")
    return user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else None

"""Redis connection for the shared request rate limiter.

Redis is optional for this service: when REDIS_URI is unset or the server
does not answer a PING at startup, the factory returns None and the rate
limiter runs in pass-through mode.
"""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config import RedisSettings
from shared.logging import get_logger

log = get_logger(__name__)


def _redacted(uri: str) -> str:
    return uri.rsplit("@", 1)[-1]


async def create_redis_client(settings: RedisSettings) -> Optional[aioredis.Redis]:
    if not settings.redis_uri:
        log.info("redis_not_configured", rate_limiting="disabled")
        return None

    client: aioredis.Redis = aioredis.from_url(
        settings.redis_uri,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        log.warning(
            "redis_unavailable",
            host=_redacted(settings.redis_uri),
            error=str(e),
            error_type=type(e).__name__,
        )
        await client.aclose()
        return None

    log.info("redis_connected", host=_redacted(settings.redis_uri))
    return client

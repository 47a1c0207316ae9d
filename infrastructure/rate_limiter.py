"""Fixed-window request rate limiter backed by Redis.

Counters live in Redis so every app instance shares the same window. The
key is created with SET NX EX and then INCRed in one transaction, which
anchors the window at the first hit on any Redis version. When Redis is
absent or failing the limiter allows the request; Redis is an optional
dependency.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from shared.logging import get_logger

log = get_logger(__name__)

_KEY_PREFIX = "ratelimit"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int = 0


class RateLimiter:
    def __init__(self, redis_client: Optional[aioredis.Redis]) -> None:
        self._redis = redis_client

    @staticmethod
    def _key(scope: str, identifier: str) -> str:
        return f"{_KEY_PREFIX}:{scope}:{identifier}"

    async def hit(
        self, scope: str, identifier: str, limit: int, window_seconds: int
    ) -> RateLimitDecision:
        """Count one request for (*scope*, *identifier*) and decide."""
        if self._redis is None:
            return RateLimitDecision(allowed=True, remaining=limit)

        key = self._key(scope, identifier)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(key, 0, ex=window_seconds, nx=True)
                pipe.incr(key)
                pipe.ttl(key)
                _, count, ttl = await pipe.execute()
        except RedisError as e:
            log.warning(
                "rate_limiter_unavailable",
                scope=scope,
                error=str(e),
                error_type=type(e).__name__,
            )
            return RateLimitDecision(allowed=True, remaining=limit)

        count = int(count)
        if count > limit:
            retry_after = int(ttl) if ttl and int(ttl) > 0 else window_seconds
            return RateLimitDecision(allowed=False, remaining=0, retry_after=retry_after)
        return RateLimitDecision(allowed=True, remaining=limit - count)

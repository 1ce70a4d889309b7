"""Trade rate limiting: Redis fixed-window counter.

Rules:
  - Trade endpoints: TRADE_RATE_LIMIT_PER_MINUTE requests per user (0 = off)
  - Key pattern: "ratelimit:{user_id}:trade", expires with the window

Redis logic:
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, 60)
    if count > limit:
        raise RateLimitError()

If Redis itself is unreachable the request is allowed through and a warning
is logged.
"""

import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.requests import HTTPConnection

from src.pt_common.errors import RateLimitError

logger = logging.getLogger(__name__)

RedisFactory = Callable[[], Awaitable[aioredis.Redis]]


class TradeRateLimiter:
    def __init__(
        self,
        redis_factory: RedisFactory,
        limit_per_window: int,
        window_seconds: int = 60,
    ) -> None:
        if limit_per_window <= 0:
            raise ValueError(f"limit_per_window must be positive, got {limit_per_window}")
        self._redis_factory = redis_factory
        self._limit = limit_per_window
        self._window = window_seconds

    async def check(self, subject: str) -> None:
        key = f"ratelimit:{subject}:trade"
        try:
            redis = await self._redis_factory()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, self._window)
        except (RedisError, OSError) as exc:
            logger.warning("Rate limiter unavailable, allowing %s: %s", subject, exc)
            return
        if count > self._limit:
            logger.info("Rate limit hit: %s (%d > %d)", subject, count, self._limit)
            raise RateLimitError()


async def enforce_trade_rate_limit(conn: HTTPConnection) -> None:
    """FastAPI dependency for trade routes; no-op when the limiter is disabled."""
    components = conn.app.state.components
    limiter: TradeRateLimiter | None = components.rate_limiter
    if limiter is None:
        return
    subject = conn.path_params.get("user_id") or components.testnet.user_id
    await limiter.check(subject)

"""Tests for the Redis-backed TradeRateLimiter."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.pt_common.errors import RateLimitError
from src.pt_gateway.middleware.rate_limit import TradeRateLimiter


def _limiter(redis: AsyncMock, limit: int = 5) -> TradeRateLimiter:
    async def factory() -> AsyncMock:
        return redis

    return TradeRateLimiter(factory, limit)  # type: ignore[arg-type]


class TestTradeRateLimiter:
    async def test_first_hit_sets_expiry(self) -> None:
        redis = AsyncMock()
        redis.incr.return_value = 1
        await _limiter(redis).check("u1")
        redis.incr.assert_awaited_once_with("ratelimit:u1:trade")
        redis.expire.assert_awaited_once_with("ratelimit:u1:trade", 60)

    async def test_later_hits_keep_expiry(self) -> None:
        redis = AsyncMock()
        redis.incr.return_value = 3
        await _limiter(redis).check("u1")
        redis.expire.assert_not_awaited()

    async def test_over_limit_raises(self) -> None:
        redis = AsyncMock()
        redis.incr.return_value = 6
        with pytest.raises(RateLimitError):
            await _limiter(redis, limit=5).check("u1")

    async def test_redis_down_allows_request(self) -> None:
        redis = AsyncMock()
        redis.incr.side_effect = RedisConnectionError("refused")
        await _limiter(redis).check("u1")  # Should not raise

    def test_limit_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            _limiter(AsyncMock(), limit=0)

"""
Tests for the rate limiter and its counting stores.
"""

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis

from wellauth.core.exceptions import RateLimitError
from wellauth.services.rate_limit import (
    InMemoryRateLimitStore,
    RedisRateLimitStore,
    RateLimitConfig,
    RateLimiter,
    RateLimits
)


class FakeClock:
    """Controllable clock in unix seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_limiter(clock) -> RateLimiter:
    return RateLimiter(InMemoryRateLimitStore(sweep_interval_seconds=3600), clock=clock)


@pytest_asyncio.fixture
async def redis_limiter(clock):
    client = FakeAsyncRedis(decode_responses=True)
    limiter = RateLimiter(RedisRateLimitStore(client), clock=clock)
    yield limiter
    await limiter.close()


@pytest.mark.unit
class TestInMemoryRateLimit:
    """Test fixed-window counting in the in-process store."""

    @pytest.mark.asyncio
    async def test_allows_up_to_limit_then_blocks(self, memory_limiter, clock):
        config = RateLimitConfig(max_requests=3, window_seconds=60)

        results = [await memory_limiter.check("ip:1", config) for _ in range(3)]
        assert [r.allowed for r in results] == [True, True, True]
        assert [r.remaining for r in results] == [2, 1, 0]

        blocked = await memory_limiter.check("ip:1", config)
        assert blocked.allowed is False
        assert blocked.remaining == 0
        assert blocked.reset_at == clock.now + 60

    @pytest.mark.asyncio
    async def test_window_resets_after_expiry(self, memory_limiter, clock):
        config = RateLimitConfig(max_requests=2, window_seconds=60)
        for _ in range(3):
            await memory_limiter.check("ip:1", config)

        clock.advance(60)
        result = await memory_limiter.check("ip:1", config)

        assert result.allowed is True
        assert result.remaining == 1
        assert result.reset_at == clock.now + 60

    @pytest.mark.asyncio
    async def test_window_does_not_slide(self, memory_limiter, clock):
        config = RateLimitConfig(max_requests=2, window_seconds=60)
        first = await memory_limiter.check("ip:1", config)

        clock.advance(30)
        second = await memory_limiter.check("ip:1", config)

        assert second.reset_at == first.reset_at

    @pytest.mark.asyncio
    async def test_identifiers_are_independent(self, memory_limiter):
        config = RateLimitConfig(max_requests=1, window_seconds=60)

        assert (await memory_limiter.check("ip:1", config)).allowed
        assert not (await memory_limiter.check("ip:1", config)).allowed
        assert (await memory_limiter.check("ip:2", config)).allowed

    @pytest.mark.asyncio
    async def test_enforce_raises_with_retry_time(self, memory_limiter, clock):
        config = RateLimits.STRICT
        for _ in range(config.max_requests):
            await memory_limiter.enforce("email:a@example.com", config)

        with pytest.raises(RateLimitError) as exc_info:
            await memory_limiter.enforce("email:a@example.com", config)

        error = exc_info.value
        assert error.status_code == 429
        assert error.code == "RATE_LIMIT_EXCEEDED"
        assert error.details["retry_at"] == int(clock.now + 60)
        assert error.headers["X-RateLimit-Limit"] == "5"
        assert "Retry-After" in error.headers

    @pytest.mark.asyncio
    async def test_sweep_removes_expired_entries(self, clock):
        store = InMemoryRateLimitStore(sweep_interval_seconds=3600)
        await store.hit("short", RateLimitConfig(1, 10), clock.now)
        await store.hit("long", RateLimitConfig(1, 120), clock.now)

        assert store.sweep(clock.now + 5) == 0
        assert store.sweep(clock.now + 10) == 1
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_start_and_close_sweeper(self, clock):
        store = InMemoryRateLimitStore(sweep_interval_seconds=3600)
        await store.start()
        await store.hit("ip:1", RateLimitConfig(1, 10), clock.now)

        await store.close()

        assert len(store) == 0


@pytest.mark.unit
class TestRedisRateLimit:
    """Test the shared counting store against fakeredis."""

    @pytest.mark.asyncio
    async def test_allows_up_to_limit_then_blocks(self, redis_limiter):
        config = RateLimitConfig(max_requests=3, window_seconds=60)

        results = [await redis_limiter.check("ip:1", config) for _ in range(3)]
        assert [r.remaining for r in results] == [2, 1, 0]

        blocked = await redis_limiter.check("ip:1", config)
        assert blocked.allowed is False
        assert blocked.limit == 3

    @pytest.mark.asyncio
    async def test_blocked_requests_are_not_counted(self, redis_limiter):
        config = RateLimitConfig(max_requests=1, window_seconds=60)
        await redis_limiter.check("ip:1", config)
        for _ in range(3):
            await redis_limiter.check("ip:1", config)

        value = await redis_limiter.store.client.get("rate_limit:ip:1")
        assert int(value) == 1

    @pytest.mark.asyncio
    async def test_window_has_ttl(self, redis_limiter, clock):
        config = RateLimitConfig(max_requests=5, window_seconds=60)
        result = await redis_limiter.check("ip:1", config)

        ttl_ms = await redis_limiter.store.client.pttl("rate_limit:ip:1")
        assert 0 < ttl_ms <= 60_000
        assert clock.now < result.reset_at <= clock.now + 60

    @pytest.mark.asyncio
    async def test_expired_window_starts_fresh(self, redis_limiter):
        config = RateLimitConfig(max_requests=1, window_seconds=60)
        await redis_limiter.check("ip:1", config)
        assert not (await redis_limiter.check("ip:1", config)).allowed

        await redis_limiter.store.client.delete("rate_limit:ip:1")

        assert (await redis_limiter.check("ip:1", config)).allowed

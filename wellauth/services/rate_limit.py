"""
Rate limiting service untuk WellAuth.

Fixed window counter per identifier. Backend counting store bisa diganti:
in-memory (satu instance, default) atau Redis (shared, multi instance).
Hasil limiter bersifat advisory; invariant keamanan tetap dijaga database.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import redis.asyncio as redis

from wellauth.core.config import settings
from wellauth.core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    """Batas request per window."""
    max_requests: int
    window_seconds: float


@dataclass(frozen=True)
class RateLimitResult:
    """Hasil pengecekan rate limit."""
    allowed: bool
    remaining: int
    reset_at: float
    limit: int

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }


class RateLimits:
    """Tier rate limit yang dipakai handler."""
    STRICT = RateLimitConfig(max_requests=5, window_seconds=60)
    MODERATE = RateLimitConfig(max_requests=20, window_seconds=60)
    GENEROUS = RateLimitConfig(max_requests=100, window_seconds=60)
    HOURLY_CEILING = RateLimitConfig(max_requests=50, window_seconds=3600)
    PASSWORD_RESET_HOURLY = RateLimitConfig(max_requests=10, window_seconds=3600)


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float


class RateLimitStore(ABC):
    """Interface counting store untuk RateLimiter."""

    @abstractmethod
    async def hit(self, key: str, config: RateLimitConfig, now: float) -> RateLimitResult:
        """
        Catat satu request untuk key dan kembalikan status window.

        Request yang ditolak tidak menambah counter.
        """

    async def start(self) -> None:
        """Hook startup aplikasi."""

    async def close(self) -> None:
        """Hook shutdown aplikasi."""


class InMemoryRateLimitStore(RateLimitStore):
    """
    Counting store in-process.

    Hanya valid untuk deployment satu instance. Entry yang expired dibersihkan
    oleh sweep periodik; entry expired yang terbaca sebelum sweep diperlakukan
    sebagai window baru.
    """

    def __init__(self, sweep_interval_seconds: Optional[float] = None):
        self._entries: Dict[str, RateLimitEntry] = {}
        self.sweep_interval_seconds = (
            sweep_interval_seconds
            if sweep_interval_seconds is not None
            else settings.RATE_LIMIT_SWEEP_INTERVAL_SECONDS
        )
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._entries)

    async def hit(self, key: str, config: RateLimitConfig, now: float) -> RateLimitResult:
        entry = self._entries.get(key)

        if entry is None or now >= entry.reset_at:
            entry = RateLimitEntry(count=1, reset_at=now + config.window_seconds)
            self._entries[key] = entry
            return RateLimitResult(
                allowed=True,
                remaining=config.max_requests - 1,
                reset_at=entry.reset_at,
                limit=config.max_requests
            )

        if entry.count >= config.max_requests:
            return RateLimitResult(
                allowed=False,
                remaining=0,
                reset_at=entry.reset_at,
                limit=config.max_requests
            )

        entry.count += 1
        return RateLimitResult(
            allowed=True,
            remaining=config.max_requests - entry.count,
            reset_at=entry.reset_at,
            limit=config.max_requests
        )

    def sweep(self, now: Optional[float] = None) -> int:
        """
        Hapus entry yang window-nya sudah lewat.

        Returns:
            Jumlah entry yang dihapus
        """
        now = time.time() if now is None else now
        expired = [key for key, entry in self._entries.items() if now >= entry.reset_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            removed = self.sweep()
            if removed:
                logger.debug(f"Rate limit sweep removed {removed} expired entries")

    async def start(self) -> None:
        if self._sweeper is None:
            self._sweeper = asyncio.create_task(self._sweep_loop())

    async def close(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        self._entries.clear()


class RedisRateLimitStore(RateLimitStore):
    """
    Counting store di Redis untuk deployment multi instance.

    Window dibuka dengan SET NX PX lalu INCR, sehingga TTL window tidak
    bergeser oleh request berikutnya.
    """

    def __init__(self, client: redis.Redis, prefix: str = "rate_limit"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisRateLimitStore":
        client = redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True
        )
        return cls(client)

    async def hit(self, key: str, config: RateLimitConfig, now: float) -> RateLimitResult:
        redis_key = f"{self.prefix}:{key}"
        window_ms = int(config.window_seconds * 1000)

        async with self.client.pipeline(transaction=True) as pipe:
            pipe.set(redis_key, 0, px=window_ms, nx=True)
            pipe.incr(redis_key)
            pipe.pttl(redis_key)
            _, count, ttl_ms = await pipe.execute()

        if ttl_ms is None or ttl_ms < 0:
            await self.client.pexpire(redis_key, window_ms)
            ttl_ms = window_ms

        reset_at = now + ttl_ms / 1000.0

        if count > config.max_requests:
            # Request yang ditolak tidak ikut dihitung
            await self.client.decr(redis_key)
            return RateLimitResult(
                allowed=False,
                remaining=0,
                reset_at=reset_at,
                limit=config.max_requests
            )

        return RateLimitResult(
            allowed=True,
            remaining=config.max_requests - count,
            reset_at=reset_at,
            limit=config.max_requests
        )

    async def close(self) -> None:
        await self.client.aclose()


class RateLimiter:
    """
    Facade rate limiter yang dipakai handler.

    Args:
        store: Counting store
        clock: Sumber waktu (unix seconds)
    """

    def __init__(self, store: RateLimitStore, clock: Callable[[], float] = time.time):
        self.store = store
        self.clock = clock

    async def check(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """
        Check dan catat request untuk identifier.

        Args:
            identifier: Key rate limit (user id, IP, atau komposit)
            config: Batas yang berlaku

        Returns:
            RateLimitResult
        """
        return await self.store.hit(identifier, config, self.clock())

    async def enforce(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """
        Seperti check, tapi raise jika limit terlampaui.

        Raises:
            RateLimitError: Membawa waktu retry
        """
        result = await self.check(identifier, config)
        if not result.allowed:
            logger.warning(f"Rate limit exceeded for {identifier}")
            raise RateLimitError(retry_at=result.reset_at, limit=result.limit)
        return result

    async def start(self) -> None:
        await self.store.start()

    async def close(self) -> None:
        await self.store.close()


def build_rate_limit_store() -> RateLimitStore:
    """Buat counting store sesuai konfigurasi."""
    if settings.RATE_LIMIT_BACKEND == "redis":
        if not settings.REDIS_URL:
            raise ValueError("REDIS_URL must be set when RATE_LIMIT_BACKEND is 'redis'")
        return RedisRateLimitStore.from_url(settings.REDIS_URL)
    return InMemoryRateLimitStore()

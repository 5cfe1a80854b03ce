"""Fixed-window rate limiting for superadmin actions.

The limiter is keyed by ``"{actor_id}:{scope}"``. Storage is pluggable: the
in-memory store only limits within one process, the Redis store is shared by
every instance pointing at the same Redis.
"""

import asyncio
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Protocol

from redis.asyncio import Redis

from jzapi.utils.clock import Clock, system_clock
from jzapi.utils.logger import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    retry_after_sec: int
    remaining: int


class RateLimitStore(Protocol):
    async def hit(self, key: str, window_seconds: int) -> tuple[int, float]:
        """Count one hit; return (hits in current window, seconds until reset)."""
        ...


@dataclass
class _Window:
    count: int
    reset_at: datetime


class InMemoryRateLimitStore:
    """Per-process store. Under-enforces when several instances run."""

    def __init__(self, clock: Clock = system_clock):
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = asyncio.Lock()

    async def hit(self, key: str, window_seconds: int) -> tuple[int, float]:
        async with self._lock:
            now = self._clock.now()
            window = self._windows.get(key)
            if window is None or window.reset_at <= now:
                window = _Window(count=0, reset_at=now + timedelta(seconds=window_seconds))
                self._windows[key] = window
                self._prune(now)
            window.count += 1
            return window.count, (window.reset_at - now).total_seconds()

    def _prune(self, now: datetime) -> None:
        expired = [k for k, w in self._windows.items() if w.reset_at <= now]
        for k in expired:
            del self._windows[k]


class RedisRateLimitStore:
    """Shared store using INCR + EXPIRE."""

    def __init__(self, redis: Redis, prefix: str = "admin_rate"):
        self._redis = redis
        self._prefix = prefix

    async def hit(self, key: str, window_seconds: int) -> tuple[int, float]:
        redis_key = f"{self._prefix}:{key}"
        count = await self._redis.incr(redis_key)
        if count == 1:
            await self._redis.expire(redis_key, window_seconds)
            return count, float(window_seconds)
        ttl = await self._redis.ttl(redis_key)
        if ttl < 0:
            # key lost its expiry; start a fresh window
            await self._redis.expire(redis_key, window_seconds)
            ttl = window_seconds
        return count, float(ttl)


class AdminRateLimiter:
    """Throttle superadmin mutations per actor and action scope."""

    def __init__(self, store: Optional[RateLimitStore] = None):
        self.store = store or InMemoryRateLimitStore()

    async def check(
        self,
        actor_id: str,
        scope: str,
        max_hits: int = 20,
        window_seconds: int = 60,
    ) -> RateLimitDecision:
        count, reset_in = await self.store.hit(f"{actor_id}:{scope}", window_seconds)
        if count > max_hits:
            retry_after = max(1, math.ceil(reset_in))
            log.info(
                "admin rate limited",
                actor_id=actor_id,
                scope=scope,
                retry_after=retry_after,
            )
            return RateLimitDecision(allowed=False, retry_after_sec=retry_after, remaining=0)
        return RateLimitDecision(
            allowed=True, retry_after_sec=0, remaining=max(0, max_hits - count)
        )

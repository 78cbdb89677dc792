"""Fixed-window rate limiting for uploads.

The limiter is built once per process (see ``main.lifespan``) and injected
into request handlers. The in-memory backend only throttles within a single
process; the Redis backend shares counters across workers.
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Protocol

import redis

from resource_hub.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate limit check."""

    allowed: bool
    retry_after: int = 0  # seconds until the window resets, when denied


class RateLimitBackend(Protocol):
    """Storage for per-key attempt counters."""

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        """Record an attempt for ``key`` and decide whether it is allowed."""
        ...


class InMemoryRateLimitBackend:
    """Process-local counters guarded by a lock."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._windows: dict[str, tuple[int, float]] = {}  # key -> (count, reset_at)
        self._lock = Lock()
        self._next_sweep = 0.0

    def _evict_expired(self, now: float, window_seconds: int) -> None:
        """Drop finished windows, at most once per window length."""
        if now < self._next_sweep:
            return
        self._windows = {
            key: entry for key, entry in self._windows.items() if entry[1] >= now
        }
        self._next_sweep = now + window_seconds

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            self._evict_expired(now, window_seconds)
            count, reset_at = self._windows.get(key, (0, 0.0))

            # First attempt or window expired
            if count == 0 or now > reset_at:
                self._windows[key] = (1, now + window_seconds)
                return RateLimitDecision(allowed=True)

            if count >= limit:
                return RateLimitDecision(allowed=False, retry_after=math.ceil(reset_at - now))

            self._windows[key] = (count + 1, reset_at)
            return RateLimitDecision(allowed=True)

    def reset(self) -> None:
        """Forget every counter."""
        with self._lock:
            self._windows.clear()


class RedisRateLimitBackend:
    """Counters shared through Redis, one key per window."""

    def __init__(self, client: redis.Redis, prefix: str = "ratelimit"):
        self._redis = client
        self._prefix = prefix

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        redis_key = f"{self._prefix}:{key}"
        count = self._redis.incr(redis_key)
        if count == 1:
            self._redis.expire(redis_key, window_seconds)

        if count > limit:
            ttl = self._redis.ttl(redis_key)
            if ttl is None or ttl < 0:
                # Key lost its expiry (e.g. a crash between INCR and EXPIRE)
                self._redis.expire(redis_key, window_seconds)
                ttl = window_seconds
            return RateLimitDecision(allowed=False, retry_after=int(ttl))

        return RateLimitDecision(allowed=True)


class RateLimiter:
    """Allows ``limit`` attempts per key per ``window_seconds``."""

    def __init__(self, backend: RateLimitBackend, limit: int = 5, window_seconds: int = 300):
        self.backend = backend
        self.limit = limit
        self.window_seconds = window_seconds

    def check(self, key: str) -> RateLimitDecision:
        """Record an attempt and return whether it may proceed."""
        if self.limit <= 0:
            return RateLimitDecision(allowed=False, retry_after=self.window_seconds)

        decision = self.backend.hit(key, self.limit, self.window_seconds)
        if not decision.allowed:
            logger.warning(f"Rate limit exceeded for {key}, retry in {decision.retry_after}s")
        return decision


def build_upload_rate_limiter(settings: Settings | None = None) -> RateLimiter:
    """Create the upload limiter for this process from settings."""
    settings = settings or get_settings()
    backend: RateLimitBackend
    if settings.rate_limit_backend == "redis":
        backend = RedisRateLimitBackend(redis.from_url(settings.redis_url), prefix="upload")
        logger.info("Upload rate limiting backed by Redis")
    else:
        backend = InMemoryRateLimitBackend()
        logger.info("Upload rate limiting backed by process memory")
    return RateLimiter(
        backend,
        limit=settings.upload_rate_limit,
        window_seconds=settings.upload_rate_window_seconds,
    )

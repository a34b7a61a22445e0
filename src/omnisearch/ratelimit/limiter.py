"""Search rate limiter — Per-user request ceilings for the search endpoints.

Each (user, endpoint class) pair owns a counter and the start of its current
window. A request increments the counter; once the window has elapsed the
counter restarts at 1. When the counter passes the class ceiling the request is
rejected with ``RateLimitExceededError`` and the caller is told how long to
wait.

Two stores are available:

  - ``MemoryRateLimitStore``: a dict guarded by a ``threading.Lock``. Suitable
    for a single worker process; expired windows are pruned periodically.
  - ``RedisRateLimitStore``: one key per pair with a TTL equal to the window.
    Shared between workers, increments run in a MULTI/EXEC pipeline.

Usage::

    limiter = SearchRateLimiter(settings.rate_limit)
    await limiter.initialize()
    await limiter.check(ctx.user_id, EndpointClass.FULL_SEARCH)
"""

from __future__ import annotations

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import StrEnum

import redis.asyncio as aioredis
from pydantic import BaseModel, Field

from omnisearch.config.settings import RateLimitRule, RateLimitSettings
from omnisearch.core.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

PRUNE_INTERVAL_SECONDS = 300.0


class EndpointClass(StrEnum):
    """Rate-limit bucket of a search entry point."""

    FULL_SEARCH = "full-search"
    QUICK_SEARCH = "quick-search"


class RateLimitState(BaseModel):
    """Counter for one (user, endpoint class) window."""

    count: int = Field(default=0, ge=0, description="Requests counted in the current window")
    window_start: float = Field(description="Clock reading when the current window opened")
    window_seconds: float = Field(gt=0, description="Length of the window")

    def expired(self, now: float) -> bool:
        return now - self.window_start >= self.window_seconds

    def retry_after(self, now: float) -> float:
        """Seconds until this window closes."""
        return max(0.0, self.window_start + self.window_seconds - now)


class RateLimitStore(ABC):
    """Storage for rate-limit counters."""

    @abstractmethod
    async def hit(self, key: str, window_seconds: float) -> RateLimitState:
        """Count one request for ``key`` and return the updated state.

        Opening a new window when the previous one has expired, incrementing
        and reading back must happen atomically.
        """

    @abstractmethod
    async def get(self, key: str) -> RateLimitState | None:
        """Current state for ``key``, or ``None`` if there is no live window."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Forget the window for ``key``."""

    async def initialize(self) -> None:
        """Open connections. Called once during startup."""

    async def shutdown(self) -> None:
        """Close connections."""


# ── Memory store ─────────────────────────────────────────────────────────────


class MemoryRateLimitStore(RateLimitStore):
    """Process-local counters.

    Args:
        clock: Monotonic clock, injectable for tests.
        prune_interval: Seconds between sweeps of expired windows.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        prune_interval: float = PRUNE_INTERVAL_SECONDS,
    ) -> None:
        self._clock = clock
        self._prune_interval = prune_interval
        self._states: dict[str, RateLimitState] = {}
        self._lock = threading.Lock()
        self._last_prune = clock()

    async def hit(self, key: str, window_seconds: float) -> RateLimitState:
        now = self._clock()
        with self._lock:
            self._maybe_prune(now)
            state = self._states.get(key)
            if state is None or state.expired(now):
                state = RateLimitState(count=1, window_start=now, window_seconds=window_seconds)
            else:
                state = state.model_copy(update={"count": state.count + 1})
            self._states[key] = state
            return state

    async def get(self, key: str) -> RateLimitState | None:
        now = self._clock()
        with self._lock:
            state = self._states.get(key)
        if state is None or state.expired(now):
            return None
        return state

    async def delete(self, key: str) -> None:
        with self._lock:
            self._states.pop(key, None)

    def prune(self) -> int:
        """Drop every expired window.

        Returns:
            Number of windows removed.
        """
        with self._lock:
            return self._prune(self._clock())

    def __len__(self) -> int:
        return len(self._states)

    def _maybe_prune(self, now: float) -> None:
        if now - self._last_prune >= self._prune_interval:
            self._prune(now)

    def _prune(self, now: float) -> int:
        expired = [key for key, state in self._states.items() if state.expired(now)]
        for key in expired:
            del self._states[key]
        self._last_prune = now
        if expired:
            logger.debug("Cleaned up %d expired rate limit windows", len(expired))
        return len(expired)


# ── Redis store ──────────────────────────────────────────────────────────────


class RedisRateLimitStore(RateLimitStore):
    """Counters shared between workers through Redis.

    The window is the key's TTL: the first request of a window creates the key
    with ``SET NX EX``, later requests ``INCR`` it, and the remaining TTL is the
    retry hint. Clock readings in the returned state are relative to the
    caller's ``clock``.

    Args:
        redis_url: Redis connection URL.
        key_prefix: Prefix for every counter key.
        clock: Clock used to express ``window_start``.
        client: Pre-built client, mainly for tests.
    """

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "omnisearch:ratelimit",
        clock: Callable[[], float] = time.monotonic,
        client: aioredis.Redis | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._key_prefix = key_prefix
        self._clock = clock
        self._client = client

    async def initialize(self) -> None:
        """Connect to Redis and verify the connection."""
        if self._client is None:
            self._client = aioredis.from_url(self._redis_url, decode_responses=True)
        await self._client.ping()
        logger.info("Connected to Redis rate limit store at %s", self._redis_url)

    async def shutdown(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def hit(self, key: str, window_seconds: float) -> RateLimitState:
        client = self._require_client()
        redis_key = self._redis_key(key)
        ttl_seconds = max(1, math.ceil(window_seconds))

        async with client.pipeline(transaction=True) as pipe:
            pipe.set(redis_key, 0, ex=ttl_seconds, nx=True)
            pipe.incr(redis_key)
            pipe.ttl(redis_key)
            _, count, ttl = await pipe.execute()

        return self._state(int(count), int(ttl), window_seconds)

    async def get(self, key: str) -> RateLimitState | None:
        client = self._require_client()
        redis_key = self._redis_key(key)

        async with client.pipeline(transaction=True) as pipe:
            pipe.get(redis_key)
            pipe.ttl(redis_key)
            value, ttl = await pipe.execute()

        if value is None:
            return None
        # The window length is not stored; a window never outlives its TTL.
        ttl = max(int(ttl), 0)
        return self._state(int(value), ttl, float(max(ttl, 1)))

    async def delete(self, key: str) -> None:
        await self._require_client().delete(self._redis_key(key))

    def _state(self, count: int, ttl: int, window_seconds: float) -> RateLimitState:
        remaining = window_seconds if ttl < 0 else min(float(ttl), window_seconds)
        window_start = self._clock() - (window_seconds - remaining)
        return RateLimitState(count=count, window_start=window_start, window_seconds=window_seconds)

    def _redis_key(self, key: str) -> str:
        return f"{self._key_prefix}:{key}"

    def _require_client(self) -> aioredis.Redis:
        if self._client is None:
            raise RuntimeError("Redis rate limit store is not initialized")
        return self._client


# ── Limiter ──────────────────────────────────────────────────────────────────


class SearchRateLimiter:
    """Enforces per-user ceilings on the search endpoint classes.

    Attributes:
        settings: Rate limit configuration.
        store: Counter storage.

    Args:
        settings: Rate limit configuration.
        store: Counter storage. Built from ``settings.backend`` if None.
        clock: Monotonic clock shared with the default store.
    """

    def __init__(
        self,
        settings: RateLimitSettings,
        store: RateLimitStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self._clock = clock
        self.store = store or self._build_store(settings, clock)

    @staticmethod
    def _build_store(settings: RateLimitSettings, clock: Callable[[], float]) -> RateLimitStore:
        if settings.backend == "redis":
            return RedisRateLimitStore(settings.redis_url, key_prefix=settings.key_prefix, clock=clock)
        return MemoryRateLimitStore(clock=clock)

    async def initialize(self) -> None:
        """Prepare the store. Falls back to process memory if Redis is unreachable."""
        try:
            await self.store.initialize()
        except Exception:
            if not isinstance(self.store, RedisRateLimitStore):
                raise
            logger.warning("Failed to connect to Redis, falling back to memory rate limit store", exc_info=True)
            self.store = MemoryRateLimitStore(clock=self._clock)
        logger.info(
            "Search rate limiter ready (backend=%s, enabled=%s)",
            type(self.store).__name__,
            self.settings.enabled,
        )

    async def shutdown(self) -> None:
        await self.store.shutdown()

    def rule_for(self, endpoint: EndpointClass | str) -> RateLimitRule:
        """Return the ceiling configured for ``endpoint``."""
        endpoint = EndpointClass(endpoint)
        if endpoint == EndpointClass.QUICK_SEARCH:
            return self.settings.quick_search
        return self.settings.full_search

    async def check(self, user_id: str | None, endpoint: EndpointClass | str) -> None:
        """Count a request and reject it if the caller is over the ceiling.

        Requests without a user id are not counted.

        Args:
            user_id: Authenticated caller.
            endpoint: The endpoint class being called.

        Raises:
            RateLimitExceededError: If the window budget is exhausted.
        """
        if not self.settings.enabled or not user_id:
            return

        endpoint = EndpointClass(endpoint)
        rule = self.rule_for(endpoint)
        state = await self.store.hit(self._key(user_id, endpoint), rule.window_seconds)

        if state.count > rule.max_requests:
            retry_after = state.retry_after(self._clock())
            logger.warning(
                "Search rate limit exceeded for user %s on %s (%d/%d), retry in %.0fs",
                user_id,
                endpoint.value,
                state.count,
                rule.max_requests,
                retry_after,
            )
            raise RateLimitExceededError(
                endpoint=endpoint.value,
                limit=rule.max_requests,
                window_seconds=rule.window_seconds,
                retry_after=retry_after,
            )

        if state.count == max(1, math.ceil(rule.max_requests * self.settings.warn_ratio)):
            logger.warning(
                "User %s approaching rate limit on %s: %d/%d requests",
                user_id,
                endpoint.value,
                state.count,
                rule.max_requests,
            )

    async def current_count(self, user_id: str, endpoint: EndpointClass | str) -> int:
        """Requests counted for the caller in the live window (0 if none)."""
        state = await self.store.get(self._key(user_id, EndpointClass(endpoint)))
        return state.count if state else 0

    async def reset(self, user_id: str, endpoint: EndpointClass | str | None = None) -> None:
        """Clear the caller's window for one endpoint class, or for all of them."""
        endpoints = [EndpointClass(endpoint)] if endpoint is not None else list(EndpointClass)
        for ep in endpoints:
            await self.store.delete(self._key(user_id, ep))

    @staticmethod
    def _key(user_id: str, endpoint: EndpointClass) -> str:
        return f"{endpoint.value}:{user_id}"

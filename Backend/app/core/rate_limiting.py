# Backend/app/core/rate_limiting.py
"""
Rate limiting service using a fixed window algorithm.

Counters live in Redis under ``ratelimit:<prefix>:<identifier>:<window>``
where ``<window>`` is the index of the current fixed time slice. Each request
is a single INCR; the first hit of a window also sets an EXPIRE so stale
windows disappear on their own. Bursts of up to twice the limit are possible
across a window boundary.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from redis.asyncio import Redis

from app.core.rate_limits_config import get_rate_limit, get_rate_limit_prefix
from app.core.logging import get_logger

logger = get_logger()


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: int  # unix seconds of the next window boundary


class FixedWindowRateLimiter:
    def __init__(
        self,
        redis: Redis,
        *,
        limit: int,
        window_seconds: int,
        prefix: str,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if limit < 1 or window_seconds < 1:
            raise ValueError("limit and window_seconds must be positive")
        self.redis = redis
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix
        self._clock = clock or time.time

    @classmethod
    def for_action(cls, redis: Redis, action: str, **kwargs) -> "FixedWindowRateLimiter":
        limit, window_seconds = get_rate_limit(action)
        return cls(
            redis,
            limit=limit,
            window_seconds=window_seconds,
            prefix=get_rate_limit_prefix(action),
            **kwargs,
        )

    def _window_index(self) -> int:
        return int(self._clock() // self.window_seconds)

    def key_for(self, identifier: str, window_index: Optional[int] = None) -> str:
        window = self._window_index() if window_index is None else window_index
        return f"ratelimit:{self.prefix}:{identifier}:{window}"

    async def limit_request(self, identifier: str) -> RateLimitResult:
        """
        Count one request for ``identifier`` and report whether it fits the budget.

        Denied requests are counted too; they never reopen the window.
        """
        window = self._window_index()
        key = self.key_for(identifier, window)
        count = int(await self.redis.incr(key))
        if count == 1:
            await self.redis.expire(key, self.window_seconds)

        allowed = count <= self.limit
        result = RateLimitResult(
            allowed=allowed,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_at=(window + 1) * self.window_seconds,
        )
        if not allowed:
            logger.debug(
                "rate_limit_window_exhausted",
                prefix=self.prefix,
                identifier=identifier,
                count=count,
                limit=self.limit,
            )
        return result

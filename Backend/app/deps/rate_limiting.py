# Backend/app/deps/rate_limiting.py
"""
FastAPI dependencies for rate limiting.

Callers are identified by the first address in X-Forwarded-For. Without that
header every caller shares the literal "unknown" bucket.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException
from starlette.requests import Request

from app.core.logging import get_logger
from app.core.rate_limiting import FixedWindowRateLimiter

logger = get_logger()

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        ip = forwarded_for.split(",")[0].strip()
        if ip:
            return ip
    return UNKNOWN_CLIENT


def require_rate_limit_factory(action: str, limiter_dependency: Callable[..., FixedWindowRateLimiter]):
    """
    Factory returning a dependency that enforces the fixed-window limit.

    Usage:
        @router.post("/endpoint")
        async def my_endpoint(
            _rate_limit: None = Depends(require_rate_limit_factory("ai_insights", get_insights_rate_limiter)),
        ):
            ...
    """
    async def _rate_limit_check(
        request: Request,
        limiter: FixedWindowRateLimiter = Depends(limiter_dependency),
    ) -> None:
        ip_address = get_client_ip(request)
        result = await limiter.limit_request(ip_address)
        if not result.allowed:
            logger.warning("rate_limit_exceeded", action=action, ip=ip_address, limit=result.limit)
            raise HTTPException(
                status_code=429,
                detail="Ratelimited!",
                headers={
                    "Retry-After": str(limiter.window_seconds),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(result.reset_at),
                },
            )
        return None

    return _rate_limit_check

# Backend/app/deps/services.py
"""
FastAPI dependencies that hand out process-wide clients and the services
built on top of them. Clients are created by the startup hook in app.main
and stored on app.state; tests override these dependencies instead.
"""

from __future__ import annotations

from fastapi import HTTPException
from redis.asyncio import Redis
from starlette.requests import Request

from app.config import settings
from app.core.logging import get_logger
from app.core.rate_limiting import FixedWindowRateLimiter
from services.ai_insights_service import InsightService
from services.content_service import ExaContentClient
from services.news_populate_service import NewsPopulateService
from services.topic_cache_service import TopicCacheStore

logger = get_logger()


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        logger.error("dependency_not_initialized", dependency=name)
        raise HTTPException(status_code=503, detail=f"Service dependency '{name}' is not available.")
    return value


def get_redis(request: Request) -> Redis:
    return _state(request, "redis")


def get_topic_cache(request: Request) -> TopicCacheStore:
    return TopicCacheStore(get_redis(request))


def get_content_client(request: Request) -> ExaContentClient:
    return _state(request, "exa_client")


def get_populate_service(request: Request) -> NewsPopulateService:
    return NewsPopulateService(
        listing=_state(request, "mediastack_client"),
        contents=get_content_client(request),
        store=get_topic_cache(request),
        per_topic_limit=settings.PER_TOPIC_NEWS_LIMIT,
    )


def get_insight_service(request: Request) -> InsightService:
    # The LLM may be absent; cached insights are still served without it.
    return InsightService(get_redis(request), getattr(request.app.state, "llm", None))


def get_insights_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter.for_action(get_redis(request), "ai_insights")

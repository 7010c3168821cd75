from __future__ import annotations

from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from pydantic import ValidationError
from starlette.requests import Request

from app.config import settings
from app.core.logging import get_logger
from app.deps.cron_auth import require_cron_secret
from app.deps.rate_limiting import require_rate_limit_factory
from app.deps.services import (
    get_content_client,
    get_insight_service,
    get_insights_rate_limiter,
    get_populate_service,
    get_topic_cache,
)
from app.models.ai_insights import InsightRequest, InsightSourcesResponse
from app.models.news_article import Article, parse_articles_with_count
from app.models.news_topics import parse_topic_list
from services.ai_insights_service import InsightService
from services.content_service import ContentProviderError, ExaContentClient
from services.news_feed_service import aggregate_feed
from services.news_populate_service import NewsPopulateService
from services.topic_cache_service import TopicCacheStore

logger = get_logger()

router = APIRouter(
    prefix="/news",
    tags=["news"],
)

FEED_CACHE_CONTROL = "public, s-maxage=300"


@router.get("")
async def get_news(
    categories: Optional[str] = Query(
        default=None,
        description="Comma-separated topics, e.g. general,technology. Defaults to general,technology,science,health.",
    ),
    store: TopicCacheStore = Depends(get_topic_cache),
) -> JSONResponse:
    topic_names = parse_topic_list(categories)
    articles = await aggregate_feed(store, topic_names)
    return JSONResponse(
        content=[article.to_public() for article in articles],
        headers={"Cache-Control": FEED_CACHE_CONTROL},
    )


@router.get("/populate", dependencies=[Depends(require_cron_secret)])
async def populate_news(
    service: NewsPopulateService = Depends(get_populate_service),
) -> PlainTextResponse:
    result = await service.populate()
    if not result.ok:
        failed = ", ".join(sorted(result.failed))
        raise HTTPException(status_code=502, detail=f"Failed to populate topics: {failed}")
    return PlainTextResponse("Populated news successfully", status_code=200)


@router.post(
    "/ai-insights",
    dependencies=[Depends(require_rate_limit_factory("ai_insights", get_insights_rate_limiter))],
)
async def create_ai_insight(
    request: Request,
    service: InsightService = Depends(get_insight_service),
):
    # Body is read only after the rate limit passed.
    try:
        body = InsightRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as exc:
        raise HTTPException(status_code=422, detail="Body must be {\"sources\": Article[]} with at least one source.") from exc

    cached = await service.get_cached(body.sources)
    if cached:
        logger.info("ai_insights_cache_hit", sources=len(body.sources))
        return PlainTextResponse(cached, status_code=200)

    logger.info("ai_insights_cache_miss", sources=len(body.sources))
    if not service.can_generate:
        logger.error("ai_insights_model_unavailable", sources=len(body.sources))
        raise HTTPException(status_code=503, detail="AI insights are not available.")
    return StreamingResponse(_logged_stream(service, body.sources), media_type="text/plain")


async def _logged_stream(service: InsightService, sources: List[Article]) -> AsyncIterator[str]:
    try:
        async for delta in service.stream_insight(sources):
            yield delta
    except Exception as exc:
        logger.error("ai_insights_stream_failed", error=str(exc), error_type=type(exc).__name__)
        raise


@router.get("/ai-insights/sources", response_model=InsightSourcesResponse)
async def get_ai_insight_sources(
    query: str = Query(..., description="Free-text topic to find recent source articles for."),
    client: ExaContentClient = Depends(get_content_client),
) -> InsightSourcesResponse:
    normalized = query.strip()
    if not normalized:
        raise HTTPException(status_code=422, detail="Query parameter is required.")
    try:
        records = await client.search_contents(normalized, lookback_days=settings.SEARCH_LOOKBACK_DAYS)
    except ContentProviderError as exc:
        raise HTTPException(status_code=502, detail="Source search failed.") from exc

    sources, dropped = parse_articles_with_count(records)
    if dropped:
        logger.warning("news_articles_dropped", stage="source_search", dropped=dropped)
    return InsightSourcesResponse(sources=sources)

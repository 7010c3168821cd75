from __future__ import annotations

import argparse
import asyncio
from typing import List, Optional

import httpx

from app.config import require_exa, require_mediastack, settings
from app.core.logging import configure_logging, get_logger
from app.core.request_id import with_run_id
from app.models.news_topics import ALL_TOPICS, NewsTopic
from services.content_service import ExaContentClient, MediastackClient
from services.news_populate_service import NewsPopulateService, PopulateResult
from services.redis_service import close_redis, create_redis
from services.topic_cache_service import TopicCacheStore

configure_logging(service_name="worker")
logger = get_logger().bind(worker="news_populate_bot")


def _parse_topic(value: str) -> NewsTopic:
    try:
        return NewsTopic(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(t.value for t in NewsTopic)
        raise argparse.ArgumentTypeError(f"unknown topic '{value}' (allowed: {allowed})") from exc


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="NewsPopulateBot: refresh the cached topic buckets.")
    parser.add_argument(
        "--topics",
        type=_parse_topic,
        nargs="+",
        default=None,
        help="Optional subset of topics to refresh (default: all).",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Per-topic listing limit (default: PER_TOPIC_NEWS_LIMIT).",
    )
    return parser.parse_args(argv)


async def run_populate(topics: Optional[List[NewsTopic]], limit: Optional[int]) -> PopulateResult:
    redis = create_redis(settings.REDIS_URL, settings.REDIS_TOKEN)
    try:
        async with httpx.AsyncClient(
            timeout=settings.NEWS_FETCH_TIMEOUT_S,
            headers={"User-Agent": "epigram-news-worker/1.0"},
        ) as http:
            service = NewsPopulateService(
                listing=MediastackClient(http, api_key=require_mediastack(), base_url=settings.MEDIASTACK_BASE_URL),
                contents=ExaContentClient(http, api_key=require_exa(), base_url=settings.EXA_BASE_URL),
                store=TopicCacheStore(redis),
                per_topic_limit=limit or settings.PER_TOPIC_NEWS_LIMIT,
            )
            return await service.populate(topics or ALL_TOPICS)
    finally:
        await close_redis(redis)


async def main_async(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    with with_run_id():
        try:
            result = await run_populate(args.topics, args.limit)
        except Exception as exc:
            logger.error("news_populate_bot_failed", error=str(exc))
            return 1
        if not result.ok:
            logger.error("news_populate_bot_degraded", failed=sorted(result.failed))
            return 1
        logger.info("news_populate_bot_finished", written=result.written)
        return 0


def main() -> None:
    exit_code = asyncio.run(main_async())
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()

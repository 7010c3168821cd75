# services/topic_cache_service.py
from __future__ import annotations

import json
from typing import Any, List, Optional, Sequence

from redis.asyncio import Redis

from app.core.logging import get_logger
from app.models.news_article import Article, parse_articles_with_count
from app.models.news_topics import NewsTopic

logger = get_logger().bind(module="topic_cache_service")

TOPIC_KEY_PREFIX = "news:"


def topic_key(topic: NewsTopic | str) -> str:
    name = topic.value if isinstance(topic, NewsTopic) else str(topic)
    return f"{TOPIC_KEY_PREFIX}{name}"


class TopicCacheStore:
    """
    One JSON-encoded Article list per topic, stored without expiry.
    put() overwrites unconditionally; the last writer wins.
    """

    def __init__(self, redis: Redis) -> None:
        self.redis = redis

    async def put(self, topic: NewsTopic | str, articles: Sequence[Article]) -> None:
        payload = json.dumps([a.to_public() for a in articles], ensure_ascii=False)
        await self.redis.set(topic_key(topic), payload)
        logger.info("topic_bucket_written", topic=topic_key(topic), articles=len(articles))

    async def get(self, topic: NewsTopic | str) -> Optional[List[Article]]:
        """
        Read a bucket. Returns None when the bucket does not exist.
        Entries that no longer validate are dropped and counted.
        """
        raw = await self.redis.get(topic_key(topic))
        if raw is None:
            return None
        items = _decode_bucket(raw)
        if items is None:
            logger.warning("topic_bucket_corrupt", topic=topic_key(topic))
            return None
        articles, dropped = parse_articles_with_count(items)
        if dropped:
            logger.warning("news_articles_dropped", stage="cache_read", topic=topic_key(topic), dropped=dropped)
        return articles


def _decode_bucket(raw: Any) -> Optional[List[Any]]:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, list) else None

"""
Feed aggregation over cached topic buckets.

The order of operations is fixed: concatenate buckets in requested topic
order, drop repeated titles (first occurrence wins), sort by publication
date (newest first), then truncate.
"""

from __future__ import annotations

from typing import Iterable, List

from app.core.logging import get_logger
from app.models.news_article import Article
from app.models.news_topics import known_topics
from services.topic_cache_service import TopicCacheStore

logger = get_logger().bind(module="news_feed_service")

FEED_PAGE_SIZE = 100


def unique_by_title(articles: Iterable[Article]) -> List[Article]:
    seen: set[str] = set()
    unique: List[Article] = []
    for article in articles:
        if article.title in seen:
            continue
        seen.add(article.title)
        unique.append(article)
    return unique


def build_feed(buckets: Iterable[List[Article]], *, page_size: int = FEED_PAGE_SIZE) -> List[Article]:
    merged: List[Article] = []
    for bucket in buckets:
        merged.extend(bucket)
    unique = unique_by_title(merged)
    # sort() is stable: equal dates keep concatenation order.
    unique.sort(key=lambda a: a.published_at, reverse=True)
    return unique[:page_size]


async def aggregate_feed(
    store: TopicCacheStore,
    topic_names: Iterable[str],
    *,
    page_size: int = FEED_PAGE_SIZE,
) -> List[Article]:
    """
    Read the requested buckets and build one feed page.
    Unknown topics and missing buckets contribute nothing.
    """
    topics = known_topics(topic_names)
    buckets: List[List[Article]] = []
    missing: List[str] = []
    for topic in topics:
        articles = await store.get(topic)
        if articles is None:
            missing.append(topic.value)
            continue
        buckets.append(articles)

    feed = build_feed(buckets, page_size=page_size)
    if missing:
        logger.info("news_feed_missing_buckets", topics=missing)
    logger.debug("news_feed_built", topics=[t.value for t in topics], articles=len(feed))
    return feed

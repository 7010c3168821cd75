"""
Population run: listing → content retrieval → normalization → topic bucket.

Each topic is refreshed independently. A failing topic is logged and
reported back, and the remaining topics still run; its previous bucket is
left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from app.core.logging import get_logger
from app.models.news_article import Article, parse_articles_with_count
from app.models.news_topics import ALL_TOPICS, NewsTopic
from services.content_service import (
    ContentProviderError,
    ExaContentClient,
    MediastackClient,
    is_excluded_url,
)
from services.topic_cache_service import TopicCacheStore

logger = get_logger().bind(module="news_populate_service")


@dataclass
class PopulateResult:
    written: Dict[str, int] = field(default_factory=dict)
    dropped: Dict[str, int] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def apply_listing_dates(records: List[Dict[str, Any]], listing: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Copy the listing's published_at onto each crawled record with the same URL.
    Crawled dates are often the first-ever publication date, so the listing wins.
    """
    dates = {}
    for entry in listing:
        url = entry.get("url")
        if isinstance(url, str) and url not in dates:
            dates[url] = entry.get("published_at")
    updated: List[Dict[str, Any]] = []
    for record in records:
        published_at = dates.get(record.get("url"))
        if published_at:
            record = {**record, "publishedDate": published_at}
        updated.append(record)
    return updated


class NewsPopulateService:
    def __init__(
        self,
        *,
        listing: MediastackClient,
        contents: ExaContentClient,
        store: TopicCacheStore,
        per_topic_limit: int,
    ) -> None:
        self.listing = listing
        self.contents = contents
        self.store = store
        self.per_topic_limit = per_topic_limit

    async def fetch_topic(self, topic: NewsTopic) -> tuple[List[Article], int]:
        listing = await self.listing.latest_news(topic.value, limit=self.per_topic_limit)
        kept = [entry for entry in listing if not is_excluded_url(entry.get("url"))]
        urls = [entry["url"] for entry in kept]
        records = await self.contents.get_contents(urls)
        records = apply_listing_dates(records, kept)
        return parse_articles_with_count(records)

    async def populate(self, topics: Optional[Iterable[NewsTopic]] = None) -> PopulateResult:
        result = PopulateResult()
        for topic in list(topics) if topics is not None else ALL_TOPICS:
            try:
                articles, dropped = await self.fetch_topic(topic)
            except ContentProviderError as exc:
                logger.error("news_populate_topic_failed", topic=topic.value, provider=exc.provider, error=str(exc))
                result.failed[topic.value] = str(exc)
                continue
            if dropped:
                logger.warning("news_articles_dropped", stage="populate", topic=topic.value, dropped=dropped)
            await self.store.put(topic, articles)
            result.written[topic.value] = len(articles)
            result.dropped[topic.value] = dropped

        logger.info(
            "news_populate_finished",
            written=result.written,
            failed=sorted(result.failed),
        )
        return result

from __future__ import annotations

import json

import pytest

from app.models.news_topics import NewsTopic
from services.topic_cache_service import TopicCacheStore, topic_key


def test_topic_key_layout():
    assert topic_key(NewsTopic.SCIENCE) == "news:science"
    assert topic_key("health") == "news:health"


@pytest.mark.asyncio
async def test_put_then_get_round_trips_articles(fake_redis, make_article):
    store = TopicCacheStore(fake_redis)
    articles = [make_article(id="a", title="A"), make_article(id="b", title="B")]

    await store.put(NewsTopic.GENERAL, articles)

    stored = json.loads(fake_redis.data["news:general"])
    assert stored[0]["publishedDate"] == "2024-01-01T00:00:00Z"
    assert "news:general" not in fake_redis.ttls

    loaded = await store.get(NewsTopic.GENERAL)
    assert [a.title for a in loaded] == ["A", "B"]


@pytest.mark.asyncio
async def test_put_overwrites_previous_bucket(fake_redis, make_article):
    store = TopicCacheStore(fake_redis)
    await store.put(NewsTopic.SPORTS, [make_article(title="Old")])
    await store.put(NewsTopic.SPORTS, [make_article(title="New")])

    loaded = await store.get(NewsTopic.SPORTS)
    assert [a.title for a in loaded] == ["New"]


@pytest.mark.asyncio
async def test_missing_bucket_is_none(fake_redis):
    assert await TopicCacheStore(fake_redis).get(NewsTopic.BUSINESS) is None


@pytest.mark.asyncio
async def test_corrupt_bucket_reads_as_missing(fake_redis):
    fake_redis.data["news:business"] = "{not json"
    assert await TopicCacheStore(fake_redis).get(NewsTopic.BUSINESS) is None


@pytest.mark.asyncio
async def test_invalid_cached_entries_are_dropped(fake_redis, article_payload):
    fake_redis.data["news:health"] = json.dumps(
        [article_payload(title="Kept"), article_payload(title="Bad date", publishedDate="not-a-date")]
    )
    loaded = await TopicCacheStore(fake_redis).get(NewsTopic.HEALTH)
    assert [a.title for a in loaded] == ["Kept"]

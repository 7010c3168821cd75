"""
AI insights: a structured multi-section summary over a fixed set of articles.

Generation is split in two phases. ``stream_insight`` is the producer: it
yields text deltas from the model as they arrive. Only once the producer has
run to completion with non-empty output does the completion callback write
the full text to the cache (24h TTL). A failed or cancelled stream never
reaches the callback, so partial output is never cached.

The cache key is the ordered list of source URLs, so the same sources in a
different order are a different entry.
"""

from __future__ import annotations

from typing import AsyncIterator, List, Optional, Sequence

from redis.asyncio import Redis

from app.core.logging import get_logger
from app.models.news_article import Article
from services.openai_service import OpenAIStreamService

logger = get_logger().bind(module="ai_insights_service")

INSIGHT_KEY_PREFIX = "ai-insights:"
INSIGHT_TTL_SECONDS = 60 * 60 * 24
SOURCE_URL_DELIMITER = ","

INSIGHT_PROMPT = """As an expert journalist and storyteller, analyze these articles and create a clear, structured summary in the following format:

KEY TAKEAWAYS:
• List 3-4 main points from across all articles
• Each point should be 1-2 sentences

MAIN STORY:
• Break down the story into 4-5 short paragraphs
• Each paragraph should be 2-3 sentences maximum
• Use simple, clear language

KEY FACTS:
• List 2-3 notable statistics or facts
• Include sources where relevant

WHAT'S NEXT:
• 2-3 bullet points about potential future implications
• Keep predictions grounded in the source material

Please maintain journalistic integrity while making the content accessible and easy to scan.

Source Articles:
{sources}"""


def insight_cache_key(sources: Sequence[Article]) -> str:
    return INSIGHT_KEY_PREFIX + SOURCE_URL_DELIMITER.join(source.url for source in sources)


def build_insight_prompt(sources: Sequence[Article]) -> str:
    blocks = [f"URL: {source.url}\nContent: {source.text}" for source in sources]
    return INSIGHT_PROMPT.format(sources="\n\n".join(blocks))


class InsightService:
    def __init__(
        self,
        redis: Redis,
        llm: Optional[OpenAIStreamService],
        *,
        ttl_seconds: int = INSIGHT_TTL_SECONDS,
    ) -> None:
        self.redis = redis
        self.llm = llm
        self.ttl_seconds = ttl_seconds

    @property
    def can_generate(self) -> bool:
        return self.llm is not None

    async def get_cached(self, sources: Sequence[Article]) -> Optional[str]:
        cached = await self.redis.get(insight_cache_key(sources))
        if isinstance(cached, bytes):
            cached = cached.decode("utf-8")
        return cached or None

    async def on_complete(self, key: str, text: str) -> None:
        await self.redis.set(key, text, ex=self.ttl_seconds)
        logger.info("ai_insights_cached", key_sources=key.count(SOURCE_URL_DELIMITER) + 1, chars=len(text))

    async def stream_insight(self, sources: Sequence[Article]) -> AsyncIterator[str]:
        if self.llm is None:
            raise RuntimeError("No generative model is configured")
        key = insight_cache_key(sources)
        prompt = build_insight_prompt(sources)
        parts: List[str] = []
        async for delta in self.llm.stream_text(prompt):
            parts.append(delta)
            yield delta

        text = "".join(parts)
        if not text:
            logger.warning("ai_insights_empty_completion", sources=len(sources))
            return
        await self.on_complete(key, text)

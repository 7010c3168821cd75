from __future__ import annotations

from typing import Any, AsyncIterator, Dict, List, Optional

import pytest

from app.models.news_article import Article


class FakeRedis:
    """In-memory stand-in for the handful of redis.asyncio commands the app uses."""

    def __init__(self) -> None:
        self.data: Dict[str, Any] = {}
        self.ttls: Dict[str, int] = {}
        self.set_calls: List[str] = []

    async def get(self, key: str) -> Any:
        return self.data.get(key)

    async def set(self, key: str, value: Any, ex: Optional[int] = None) -> bool:
        self.data[key] = value
        self.set_calls.append(key)
        if ex is not None:
            self.ttls[key] = ex
        else:
            self.ttls.pop(key, None)
        return True

    async def expire(self, key: str, seconds: int) -> bool:
        if key not in self.data:
            return False
        self.ttls[key] = seconds
        return True

    async def incr(self, key: str) -> int:
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = value
        return value

    async def aclose(self) -> None:
        return None


class FakeLLM:
    """Stream double that records prompts and can fail mid-stream."""

    def __init__(self, chunks: Optional[List[str]] = None, fail_after: Optional[int] = None) -> None:
        self.chunks = chunks if chunks is not None else ["KEY TAKEAWAYS:\n", "• Markets rallied.\n"]
        self.fail_after = fail_after
        self.calls = 0
        self.prompts: List[str] = []

    async def stream_text(self, prompt: str) -> AsyncIterator[str]:
        self.calls += 1
        self.prompts.append(prompt)
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index >= self.fail_after:
                raise RuntimeError("upstream stream broke")
            yield chunk


def _article_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "id": "https://example.com/story",
        "title": "Central bank holds rates",
        "summary": "The central bank kept rates unchanged.",
        "text": "The central bank kept its benchmark rate unchanged on Tuesday.",
        "url": "https://example.com/story",
        "publishedDate": "2024-01-01T00:00:00Z",
        "image": "",
        "favicon": "",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def article_payload():
    return _article_payload


@pytest.fixture
def make_article():
    def _make(**overrides: Any) -> Article:
        return Article.model_validate(_article_payload(**overrides))
    return _make


@pytest.fixture
def make_llm():
    return FakeLLM

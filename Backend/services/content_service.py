"""
Content retrieval for the news pipeline.

Two upstream providers are involved:

* a listing provider (Mediastack) that returns the latest headlines per
  category, with an authoritative ``published_at`` per URL;
* a content provider (Exa) that turns URLs or a free-text query into full
  article records (text, short summary, images).

Both clients share one injected ``httpx.AsyncClient`` with process lifetime.
Provider errors are raised as ContentProviderError; there is no retry.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from app.core.logging import get_logger

logger = get_logger().bind(module="content_service")

SUMMARY_QUERY = "As a professional news editor, summarize this article in 50 words or less"
IMAGE_LINKS_PER_ARTICLE = 3
SEARCH_NUM_RESULTS = 3

# Low quality content, job boards, etc.
EXCLUDED_HOSTS = {"ycombinator.com", "news.ycombinator.com", "jobs.ashbyhq.com"}


class ContentProviderError(Exception):
    """An upstream content or listing provider failed or returned garbage."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


def is_excluded_url(url: Any) -> bool:
    """True for malformed URLs and for hosts we never put in the feed."""
    if not isinstance(url, str) or not url.strip():
        return True
    host = urlparse(url.strip()).hostname
    if not host:
        return True
    return host.lower() in EXCLUDED_HOSTS


def _results_from(payload: Any, key: str, provider: str) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        raise ContentProviderError(provider, "unexpected response payload")
    results = payload.get(key)
    if not isinstance(results, list):
        raise ContentProviderError(provider, f"response is missing '{key}'")
    return [item for item in results if isinstance(item, dict)]


def _flatten_exa_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shape an Exa result into the raw Article layout. Validation happens
    later in the Normalizer; this only fills the image fallback.
    """
    item = dict(record)
    extras = item.pop("extras", None) or {}
    image_links = extras.get("imageLinks") or []
    if not item.get("image") and image_links:
        item["image"] = image_links[0]
    item.setdefault("image", "")
    item.setdefault("favicon", "")
    return item


class ExaContentClient:
    provider = "exa"

    def __init__(self, client: httpx.AsyncClient, *, api_key: str, base_url: str = "https://api.exa.ai") -> None:
        self._client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def _post(self, path: str, body: Dict[str, Any]) -> Any:
        try:
            response = await self._client.post(
                f"{self.base_url}{path}",
                json=body,
                headers={"x-api-key": self.api_key},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            logger.warning("exa_request_failed", path=path, error=str(exc))
            raise ContentProviderError(self.provider, str(exc)) from exc
        except ValueError as exc:
            logger.warning("exa_invalid_json", path=path, error=str(exc))
            raise ContentProviderError(self.provider, "invalid JSON response") from exc

    async def get_contents(self, urls: List[str]) -> List[Dict[str, Any]]:
        """
        Fetch full content for each URL: text, a short editor-style summary
        and up to three image links. Always live-crawled.
        """
        if not urls:
            return []
        payload = await self._post(
            "/contents",
            {
                "urls": list(urls),
                "text": True,
                "summary": {"query": SUMMARY_QUERY},
                "extras": {"imageLinks": IMAGE_LINKS_PER_ARTICLE},
                "livecrawl": "always",
            },
        )
        results = _results_from(payload, "results", self.provider)
        logger.debug("exa_contents_fetched", requested=len(urls), returned=len(results))
        return [_flatten_exa_record(r) for r in results]

    async def search_contents(
        self,
        query: str,
        *,
        num_results: int = SEARCH_NUM_RESULTS,
        start_published_date: Optional[datetime] = None,
        lookback_days: int = 7,
    ) -> List[Dict[str, Any]]:
        """
        Keyword search for recent articles about ``query``, with contents.
        Only articles published after ``start_published_date`` are returned
        (default: ``lookback_days`` ago).
        """
        if start_published_date is None:
            start_published_date = datetime.now(timezone.utc) - timedelta(days=lookback_days)
        payload = await self._post(
            "/search",
            {
                "query": query,
                "type": "keyword",
                "numResults": num_results,
                "startPublishedDate": start_published_date.astimezone(timezone.utc)
                .isoformat(timespec="milliseconds")
                .replace("+00:00", "Z"),
                "contents": {
                    "text": True,
                    "summary": {"query": SUMMARY_QUERY},
                    "livecrawl": "always",
                },
            },
        )
        results = _results_from(payload, "results", self.provider)
        return [_flatten_exa_record(r) for r in results]


class MediastackClient:
    provider = "mediastack"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str,
        base_url: str = "http://api.mediastack.com/v1",
    ) -> None:
        self._client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def latest_news(self, topic: str, *, limit: int) -> List[Dict[str, Any]]:
        """Latest English-language US headlines for one category."""
        params = {
            "access_key": self.api_key,
            "languages": "en",
            "countries": "us",
            "categories": topic,
            "limit": limit,
        }
        try:
            response = await self._client.get(f"{self.base_url}/news", params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            # The request URL carries the access key; never log or surface it.
            status = exc.response.status_code
            logger.warning("mediastack_request_failed", topic=topic, status_code=status)
            raise ContentProviderError(self.provider, f"HTTP {status}") from exc
        except httpx.HTTPError as exc:
            logger.warning("mediastack_request_failed", topic=topic, error=type(exc).__name__)
            raise ContentProviderError(self.provider, type(exc).__name__) from exc
        except ValueError as exc:
            raise ContentProviderError(self.provider, "invalid JSON response") from exc

        if isinstance(payload, dict) and payload.get("error"):
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ContentProviderError(self.provider, message or "unknown error")
        return _results_from(payload, "data", self.provider)

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class ArticleValidationError(ValueError):
    """
    Raised by parse_article for a payload that is not a valid Article.
    Carries the raw payload so callers can log what was rejected.
    """

    def __init__(self, message: str, raw: Any = None):
        super().__init__(message)
        self.raw = raw


def _is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 datetime string into an aware UTC datetime.
    Naive values are read as UTC. Date-only strings are rejected.
    """
    if not isinstance(value, str) or "T" not in value.upper():
        raise ValueError("Must be ISO 8601 datetime")
    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as exc:
        # e.g. 0001-01-01T00:00:00+05:00 falls outside datetime's range in UTC
        raise ValueError("Must be ISO 8601 datetime") from exc


class Article(BaseModel):
    """
    Canonical normalized news article, as cached per topic and served to clients.
    Serialized with camelCase keys (publishedDate) for the web client.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=500)
    summary: str = Field(min_length=1, max_length=500)
    text: str = Field(min_length=1)
    url: str
    published_date: str = Field(alias="publishedDate")
    image: str = ""
    favicon: str = ""

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if value == "#" or _is_absolute_url(value):
            return value
        raise ValueError("Invalid URL format")

    @field_validator("published_date")
    @classmethod
    def _check_published_date(cls, value: str) -> str:
        parse_iso_datetime(value)
        return value

    @field_validator("image", "favicon", mode="before")
    @classmethod
    def _check_optional_url(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str) and value and not _is_absolute_url(value):
            raise ValueError("Invalid URL format")
        return value

    @property
    def published_at(self) -> datetime:
        return parse_iso_datetime(self.published_date)

    def to_public(self) -> dict:
        return self.model_dump(by_alias=True)


# ---- Normalizer ----------------------------------------------------------------

def parse_article(raw: Any) -> Article:
    """
    Validate a raw provider record into an Article.

    Raises:
        ArticleValidationError: if any field constraint fails
    """
    try:
        return Article.model_validate(raw)
    except ValidationError as exc:
        raise ArticleValidationError(str(exc), raw=raw) from exc


def safe_parse_article(raw: Any) -> Optional[Article]:
    """Like parse_article, but returns None instead of raising."""
    try:
        return Article.model_validate(raw)
    except ValidationError:
        return None


def parse_articles_with_count(raw_items: Iterable[Any]) -> Tuple[List[Article], int]:
    """
    Parse many records, dropping invalid ones.
    Returns (articles, dropped_count) so callers can log silent losses.
    """
    articles: List[Article] = []
    dropped = 0
    for raw in raw_items:
        article = safe_parse_article(raw)
        if article is None:
            dropped += 1
            continue
        articles.append(article)
    return articles, dropped


def parse_articles(raw_items: Iterable[Any]) -> List[Article]:
    articles, _ = parse_articles_with_count(raw_items)
    return articles

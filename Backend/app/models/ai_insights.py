from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from app.models.news_article import Article


class InsightRequest(BaseModel):
    """Body of POST /api/news/ai-insights."""

    sources: List[Article] = Field(min_length=1)


class InsightSourcesResponse(BaseModel):
    """Response of GET /api/news/ai-insights/sources."""

    sources: List[Article] = Field(default_factory=list)

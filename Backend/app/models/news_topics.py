from __future__ import annotations

from enum import Enum
from typing import Iterable, List


class NewsTopic(str, Enum):
    GENERAL = "general"
    BUSINESS = "business"
    ENTERTAINMENT = "entertainment"
    HEALTH = "health"
    SCIENCE = "science"
    SPORTS = "sports"
    TECHNOLOGY = "technology"


# Population order.
ALL_TOPICS: List[NewsTopic] = list(NewsTopic)

DEFAULT_FEED_TOPICS: List[NewsTopic] = [
    NewsTopic.GENERAL,
    NewsTopic.TECHNOLOGY,
    NewsTopic.SCIENCE,
    NewsTopic.HEALTH,
]


def parse_topic_list(raw: str | None) -> List[str]:
    """
    Split a comma-separated ``categories`` value, keeping order.
    Blank input falls back to the default feed topics.
    """
    if raw is None or not raw.strip():
        return [topic.value for topic in DEFAULT_FEED_TOPICS]
    return [part.strip().lower() for part in raw.split(",") if part.strip()]


def known_topics(names: Iterable[str]) -> List[NewsTopic]:
    """Map names to NewsTopic, silently skipping unknown or repeated names."""
    result: List[NewsTopic] = []
    for name in names:
        try:
            topic = NewsTopic(name)
        except ValueError:
            continue
        if topic not in result:
            result.append(topic)
    return result

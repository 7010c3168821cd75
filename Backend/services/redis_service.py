# services/redis_service.py
from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from redis.asyncio import Redis

from app.core.logging import get_logger

logger = get_logger().bind(module="redis_service")


def create_redis(url: str, token: Optional[str] = None) -> Redis:
    """
    Build the process-wide Redis client. Connections are opened lazily,
    so this never blocks startup on an unreachable store.
    The access token, when set, is sent as the connection password.
    """
    kwargs = {"decode_responses": True}
    if token:
        kwargs["password"] = token
    client = Redis.from_url(url, **kwargs)
    parsed = urlparse(url)
    logger.info("redis_client_created", host=parsed.hostname, port=parsed.port, tls=parsed.scheme == "rediss")
    return client


async def close_redis(client: Optional[Redis]) -> None:
    if client is None:
        return
    await client.aclose()
    logger.info("redis_client_closed")

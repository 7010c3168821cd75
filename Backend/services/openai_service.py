# services/openai_service.py
from __future__ import annotations

import time
from typing import AsyncIterator, Optional

from openai import AsyncOpenAI

from app.config import require_openai, settings
from app.core.logging import get_logger

logger = get_logger().bind(module="openai_service")


class OpenAIStreamService:
    """
    Streams plain-text completions from the chat completions API.
    The client is injected and owned by the application lifecycle.
    """

    def __init__(self, client: AsyncOpenAI, *, model: str, timeout_s: int = 30) -> None:
        self.client = client
        self.model = model
        self.timeout_s = timeout_s

    async def stream_text(self, prompt: str, *, temperature: Optional[float] = None) -> AsyncIterator[str]:
        """
        Yield text deltas as they arrive. Errors from the SDK propagate to the
        caller unchanged; nothing is retried here.
        """
        kwargs = {}
        if temperature is not None:
            kwargs["temperature"] = temperature

        t0 = time.perf_counter()
        stream = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            stream=True,
            timeout=self.timeout_s,
            **kwargs,
        )
        chars = 0
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    chars += len(delta)
                    yield delta
        finally:
            await stream.close()
            logger.info(
                "openai_stream_closed",
                model=self.model,
                chars=chars,
                duration_ms=int((time.perf_counter() - t0) * 1000),
            )


def build_llm() -> Optional[OpenAIStreamService]:
    """
    Build the streaming service from settings, or None when no key is set.
    Insights then fall back to cached text only.
    """
    try:
        api_key = require_openai()
    except RuntimeError as exc:
        logger.warning("openai_not_configured", detail=str(exc))
        return None
    client = AsyncOpenAI(api_key=api_key)
    return OpenAIStreamService(
        client,
        model=settings.OPENAI_MODEL_NAME,
    )

# Backend/app/deps/cron_auth.py
from __future__ import annotations

import hmac

from fastapi import HTTPException
from starlette.requests import Request

from app.config import require_cron_secret as configured_cron_secret
from app.config import settings
from app.core.logging import get_logger

logger = get_logger()


async def require_cron_secret(request: Request) -> None:
    """
    Guard for scheduler-only routes: the configured header must carry the
    shared secret. Any mismatch (or a missing secret in config) is a 400.
    """
    try:
        expected = configured_cron_secret()
    except RuntimeError as exc:
        logger.error("cron_secret_not_configured", path=str(request.url.path), detail=str(exc))
        raise HTTPException(status_code=400, detail="Cron secret doesn't match") from exc
    provided = request.headers.get(settings.CRON_SECRET_HEADER_NAME)
    if not provided or not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("cron_secret_mismatch", path=str(request.url.path))
        raise HTTPException(status_code=400, detail="Cron secret doesn't match")

# Backend/app/core/logging.py
from __future__ import annotations

import logging
import re
import sys
from typing import Any, Dict, List, Optional

import structlog

from app.config import settings
from app.core.request_id import get_request_id, get_run_id


# -------- Processors ---------------------------------------------------------

def _add_service(service_name: str):
    def _inner(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict
    return _inner

def _add_request_or_run_ids(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    rid = get_request_id()
    if rid:
        event_dict.setdefault("request_id", rid)
    run = get_run_id()
    if run:
        event_dict.setdefault("run_id", run)
    return event_dict

# Provider credentials travel as headers (Exa) or query params (Mediastack),
# so they can show up both as context keys and inside error strings.
_SECRET_KEYS = {
    "authorization", "token", "access_key", "api_key", "apikey",
    "x-api-key", "password", "secret", "cron_secret", "redis_token",
}
_SECRET_PARAM_RE = re.compile(r"(?i)\b(access_key|api_key|apikey|token)=([^&\s\"']+)")
REDACTED = "***redacted***"

def _secret_guard(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for k, v in list(event_dict.items()):
        if str(k).lower() in _SECRET_KEYS:
            event_dict[k] = REDACTED
        elif isinstance(v, str) and "=" in v:
            event_dict[k] = _SECRET_PARAM_RE.sub(rf"\1={REDACTED}", v)
    return event_dict


# -------- Public API ---------------------------------------------------------

def resolve_level(name: Optional[str]) -> int:
    """Map a level name like "debug" to its stdlib number; unknown names mean INFO."""
    level = getattr(logging, str(name or "").upper(), None)
    return level if isinstance(level, int) else logging.INFO

def _renderer(log_format: str) -> List[Any]:
    if log_format.lower() == "console":
        return [structlog.dev.ConsoleRenderer(colors=False)]
    return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]

_logger: structlog.BoundLogger | None = None

def configure_logging(
    service_name: str = "api",
    *,
    level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure one structlog stack for the API and the populate worker.
    Level and format default to LOG_LEVEL / LOG_FORMAT from settings.
    """
    global _logger
    numeric_level = resolve_level(level or settings.LOG_LEVEL)

    # Library loggers (httpx, uvicorn) go through stdlib to stderr.
    logging.basicConfig(
        level=numeric_level,
        format="%(message)s",
        stream=sys.stderr,
        force=True,
    )

    processors = [
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
        structlog.processors.add_log_level,
        _add_service(service_name),
        _add_request_or_run_ids,
        _secret_guard,
        *_renderer(log_format or settings.LOG_FORMAT),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _logger = structlog.get_logger()

def get_logger() -> structlog.BoundLogger:
    if _logger is None:
        configure_logging("api")
    return _logger

logger = get_logger()

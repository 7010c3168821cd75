# Backend/app/core/request_id.py
from __future__ import annotations

import contextvars
import re
import uuid
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional

_request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)
_run_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("run_id", default=None)

REQUEST_ID_HEADER = "X-Request-Id"

# Caller-supplied ids end up in every log line; anything else is replaced.
_VALID_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _new_id() -> str:
    return uuid.uuid4().hex


def resolve_request_id(headers: Mapping[str, str]) -> str:
    """Reuse a well-formed caller request id, otherwise mint one."""
    incoming = headers.get(REQUEST_ID_HEADER.lower()) or headers.get(REQUEST_ID_HEADER)
    if incoming and _VALID_ID_RE.match(incoming.strip()):
        return incoming.strip()
    return _new_id()


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()


def get_run_id() -> Optional[str]:
    return _run_id_ctx.get()


@contextmanager
def request_id_scope(headers: Mapping[str, str]) -> Iterator[str]:
    """
    Bind the request id for one HTTP request; the previous value is
    restored on exit, including when the handler raises.
    """
    token = _request_id_ctx.set(resolve_request_id(headers))
    try:
        yield _request_id_ctx.get()
    finally:
        _request_id_ctx.reset(token)


@contextmanager
def with_run_id(run_id: Optional[str] = None) -> Iterator[str]:
    """
    One id per population run, so every topic's log lines can be grouped:
        with with_run_id():
            await service.populate(topics)
    """
    token = _run_id_ctx.set(run_id or _new_id())
    try:
        yield _run_id_ctx.get()
    finally:
        _run_id_ctx.reset(token)

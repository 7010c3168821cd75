from __future__ import annotations

import json
import logging

import structlog

from app.core.logging import _add_request_or_run_ids, _secret_guard, configure_logging, resolve_level
from app.core.request_id import get_request_id, request_id_scope, resolve_request_id, with_run_id


def test_secret_guard_redacts_credentials():
    event = _secret_guard(None, "info", {"event": "x", "api_key": "abc", "access_key": "def", "topic": "science"})
    assert event["api_key"] == "***redacted***"
    assert event["access_key"] == "***redacted***"
    assert event["topic"] == "science"


def test_secret_guard_scrubs_query_params_in_messages():
    error = "Client error for url 'http://api.mediastack.com/v1/news?access_key=k3y&categories=science'"
    event = _secret_guard(None, "error", {"event": "x", "error": error})
    assert "k3y" not in event["error"]
    assert "access_key=***redacted***&categories=science" in event["error"]


def test_request_and_run_ids_are_attached():
    with request_id_scope({"x-request-id": "req-1"}):
        with with_run_id("run-1"):
            event = _add_request_or_run_ids(None, "info", {"event": "x"})
    assert event["request_id"] == "req-1"
    assert event["run_id"] == "run-1"


def test_request_id_scope_restores_previous_value():
    assert get_request_id() is None
    try:
        with request_id_scope({}) as rid:
            assert get_request_id() == rid
            raise KeyError("boom")
    except KeyError:
        pass
    assert get_request_id() is None


def test_resolve_request_id_reuses_header():
    assert resolve_request_id({"x-request-id": "abc"}) == "abc"
    assert len(resolve_request_id({})) == 32


def test_resolve_request_id_replaces_malformed_header():
    rid = resolve_request_id({"x-request-id": "bad id\nforged=1"})
    assert rid != "bad id\nforged=1"
    assert len(rid) == 32


def test_resolve_level():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level("WARNING") == logging.WARNING
    assert resolve_level("chatty") == logging.INFO
    assert resolve_level(None) == logging.INFO


def test_json_format_emits_service_and_level(capsys):
    try:
        configure_logging("worker", level="info", log_format="json")
        structlog.get_logger().info("populate_started", topics=7)
        line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    finally:
        configure_logging("api")
    assert line["event"] == "populate_started"
    assert line["level"] == "info"
    assert line["service"] == "worker"
    assert "ts" in line


def test_console_format_and_level_filter(capsys):
    try:
        configure_logging("worker", level="warning", log_format="console")
        log = structlog.get_logger()
        log.info("hidden_event")
        log.warning("shown_event")
        out = capsys.readouterr().out
    finally:
        configure_logging("api")
    assert "shown_event" in out
    assert "hidden_event" not in out
    assert not out.lstrip().startswith("{")

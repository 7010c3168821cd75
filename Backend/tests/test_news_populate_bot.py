from __future__ import annotations

import argparse

import pytest

from app.models.news_topics import NewsTopic
from app.workers import news_populate_bot as bot
from services.news_populate_service import PopulateResult


def test_parse_args_topics():
    args = bot.parse_args(["--topics", "science", "Health", "--limit", "10"])
    assert args.topics == [NewsTopic.SCIENCE, NewsTopic.HEALTH]
    assert args.limit == 10


def test_parse_args_rejects_unknown_topic():
    with pytest.raises(SystemExit):
        bot.parse_args(["--topics", "astrology"])


def test_parse_topic_error_lists_allowed_values():
    with pytest.raises(argparse.ArgumentTypeError, match="technology"):
        bot._parse_topic("astrology")


@pytest.mark.asyncio
async def test_main_async_exit_codes(monkeypatch):
    outcomes = iter([PopulateResult(written={"general": 3}), PopulateResult(failed={"general": "HTTP 500"})])

    async def fake_run(topics, limit):
        return next(outcomes)

    monkeypatch.setattr(bot, "run_populate", fake_run)
    assert await bot.main_async([]) == 0
    assert await bot.main_async(["--topics", "general"]) == 1


@pytest.mark.asyncio
async def test_main_async_fails_on_missing_config(monkeypatch):
    async def fake_run(topics, limit):
        raise RuntimeError("EXA_API_KEY is missing")

    monkeypatch.setattr(bot, "run_populate", fake_run)
    assert await bot.main_async([]) == 1

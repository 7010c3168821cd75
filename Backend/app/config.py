# app/config.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Backend/.env (this file lives in Backend/app/config.py → parent = Backend)
ENV_FILE = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    # ---- App ----
    APP_VERSION: str = "0.1.0"

    # ---- Logging ----
    # "json" for containers and log shippers, "console" for local runs.
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # ---- OpenAI ----
    # Not required at class level so the API can boot without it;
    # require_openai() validates at runtime.
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL_NAME: str = "gpt-4o-mini"

    # ---- Content provider (Exa) ----
    EXA_API_KEY: Optional[str] = None
    EXA_BASE_URL: str = "https://api.exa.ai"

    # ---- Listing provider (Mediastack) ----
    MEDIASTACK_API_KEY: Optional[str] = None
    MEDIASTACK_BASE_URL: str = "http://api.mediastack.com/v1"

    # ---- Key-value store ----
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_TOKEN: Optional[str] = None

    # ---- Population trigger ----
    CRON_SECRET_HEADER_NAME: str = "x-cron-secret"
    CRON_SECRET: Optional[str] = None
    PER_TOPIC_NEWS_LIMIT: int = 25

    NEWS_FETCH_TIMEOUT_S: int = 30
    SEARCH_LOOKBACK_DAYS: int = 7

    CORS_ALLOW_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()


def require_openai() -> str:
    """
    Runtime check with a clear message when the OpenAI key is missing.
    """
    if not settings.OPENAI_API_KEY:
        raise RuntimeError(
            "OPENAI_API_KEY is missing. Check Backend/.env "
            f"(tried loading from: {ENV_FILE})."
        )
    return settings.OPENAI_API_KEY


def require_exa() -> str:
    if not settings.EXA_API_KEY:
        raise RuntimeError(
            "EXA_API_KEY is missing. Check Backend/.env "
            f"(tried loading from: {ENV_FILE})."
        )
    return settings.EXA_API_KEY


def require_mediastack() -> str:
    if not settings.MEDIASTACK_API_KEY:
        raise RuntimeError(
            "MEDIASTACK_API_KEY is missing. Check Backend/.env "
            f"(tried loading from: {ENV_FILE})."
        )
    return settings.MEDIASTACK_API_KEY


def require_cron_secret() -> str:
    """
    The populate trigger is closed when no secret is configured.
    """
    if not settings.CRON_SECRET:
        raise RuntimeError(
            "CRON_SECRET is missing. Set it in Backend/.env "
            f"(source: {ENV_FILE})."
        )
    return settings.CRON_SECRET

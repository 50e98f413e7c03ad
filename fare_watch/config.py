from __future__ import annotations

import logging
import pathlib
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .southwest_fetcher import DEFAULT_SEARCH_URL

load_dotenv()


def _default_log_file() -> str:
    return str(pathlib.Path.home() / "fare-watch.log")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    telegram_token: Optional[str] = Field(None, alias="TELEGRAM_BOT_TOKEN")
    telegram_chat_id: Optional[str] = Field(None, alias="TELEGRAM_CHAT_ID")
    search_url: str = Field(DEFAULT_SEARCH_URL, alias="FARE_WATCH_SEARCH_URL")
    timeout_s: float = Field(30.0, alias="FARE_WATCH_TIMEOUT_S")
    log_file: str = Field(default_factory=_default_log_file, alias="FARE_WATCH_LOG_FILE")
    log_level: str = Field("INFO", alias="FARE_WATCH_LOG_LEVEL")

    @field_validator("telegram_token", "telegram_chat_id")
    @classmethod
    def _blank_is_unset(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("timeout_s")
    @classmethod
    def _timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("FARE_WATCH_TIMEOUT_S must be greater than 0")
        return v

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_token and self.telegram_chat_id)


@lru_cache()
def get_settings() -> Settings:
    """Return application settings loaded from the environment."""
    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "get_settings"]

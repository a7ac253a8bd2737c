from __future__ import annotations

import logging
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Dashboard settings, read from ``INSIGHT_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(env_prefix="INSIGHT_", env_file=".env", extra="ignore")

    point_count: int = 110
    seed: int = 42
    default_min_confidence: float = 0.55
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    @field_validator("default_min_confidence")
    @classmethod
    def _clamp_confidence(cls, v: float) -> float:
        return max(0.0, min(1.0, float(v)))

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return (v or "INFO").upper()


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str | None = None) -> None:
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level or get_settings().log_level)
        return
    logging.basicConfig(level=level or get_settings().log_level, format=LOG_FORMAT)

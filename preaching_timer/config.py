"""Application configuration using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_json: bool = False
    allowed_origins: str = "http://localhost:3000"

    # Timer defaults
    default_total_duration: int = 20 * 60
    default_introduction_ratio: float = 0.2
    default_main_ratio: float = 0.6
    default_conclusion_ratio: float = 0.2

    tick_interval_seconds: float = 1.0
    overtime_limit_seconds: int = 5 * 60  # floor for negative countdown
    emergency_threshold_seconds: int = 60

    # Where the last chosen duration is remembered between sessions
    duration_store_path: str = ".preaching-timer/duration.json"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()

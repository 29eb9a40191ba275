"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables (prefix STOCKTRACKER_) and an
optional .env file. Values that change at runtime live in the DuckDB settings
table instead.
"""
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="STOCKTRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage, None means data/portfolio.duckdb next to the package
    db_path: str | None = None

    # Market data
    quote_provider: Literal["yfinance", "yfapi"] = "yfinance"
    yfapi_base_url: str = "https://yfapi.net"
    yfapi_key: str = ""
    request_timeout: float = 10.0

    # Polling intervals in seconds
    portfolio_refresh_seconds: int = 300
    market_refresh_seconds: int = 30
    detail_refresh_seconds: int = 15
    watch_refresh_seconds: int = 5

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()

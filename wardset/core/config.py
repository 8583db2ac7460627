"""
Central configuration loaded from environment variables.
All settings have sensible defaults so the service works out of the box
with no manual configuration.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ------------------------------------------------------------------ #
    # Service identity
    # ------------------------------------------------------------------ #
    app_name: str = "wardset-api"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # ------------------------------------------------------------------ #
    # API authentication
    # Set API_KEY to a non-empty string to enable authentication.
    # Leave blank (default) to run in open / unauthenticated mode.
    # ------------------------------------------------------------------ #
    api_key: str = ""

    # ------------------------------------------------------------------ #
    # Rate limiting  (requires slowapi, enabled by default)
    # Set RATE_LIMIT_ENABLED=false to disable entirely.
    # ------------------------------------------------------------------ #
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 60        # requests per client IP per minute

    # ------------------------------------------------------------------ #
    # Clustering
    # Worst-case cost is O(n^3) in the number of items, so requests are
    # capped at MAX_ITEMS.
    # ------------------------------------------------------------------ #
    max_items: int = Field(default=200, ge=1)
    default_min_cluster_size: int = Field(default=3, ge=1)
    default_max_cluster_size: int = Field(default=6, ge=1)
    default_undersized_policy: Literal["fail", "drop"] = "fail"

    # ------------------------------------------------------------------ #
    # Logging
    # ------------------------------------------------------------------ #
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = True          # structured JSON logs in production

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @field_validator("api_key", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip() if v else ""

    @model_validator(mode="after")
    def check_cluster_size_defaults(self) -> "Settings":
        if self.default_min_cluster_size > self.default_max_cluster_size:
            raise ValueError(
                "DEFAULT_MIN_CLUSTER_SIZE must not exceed DEFAULT_MAX_CLUSTER_SIZE."
            )
        return self

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return a cached Settings singleton.
    The cache is reset between tests via `get_settings.cache_clear()`.
    """
    return Settings()



"""
Anise - Configuration and settings.

Settings are read from the environment (and `.env`) on first access only,
so importing a module never requires credentials.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI
    openai_api_key: str = ""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Application
    anise_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ANISE_LOG_PROMPTS=1 - write every LLM call to prompt_logs/ (dev only)
    anise_log_prompts: bool = False

    # LLM
    llm_model: str = "gpt-4.1"
    llm_temperature: float = 0.1

    # Ingredient pipeline
    ingredient_concurrency: int = 5

    # Recipe import
    scrape_timeout_seconds: float = 15.0
    extraction_max_attempts: int = 3
    extraction_backoff_seconds: float = 1.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: Settings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()

"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_key: str
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-2025-04-14"
    openai_temperature: float = 0.7
    openai_max_tokens: int = 2000
    perplexity_api_key: str | None = None
    perplexity_model: str = "sonar-medium-online"
    perplexity_base_url: str = "https://api.perplexity.ai"
    save_debounce_seconds: float = 0.5
    duplicate_window_seconds: float = 5.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

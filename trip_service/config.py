"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./trips.db"

    # LLM (OpenAI-compatible endpoint; defaults target DashScope compatible mode)
    llm_api_key: SecretStr | None = None
    llm_base_url: str = "https://dashscope.aliyuncs.com/compatible-mode/v1"
    llm_model: str = "qwen-turbo"
    llm_temperature: float = 0.7
    llm_top_p: float = 0.8
    # Multi-day itineraries need headroom; small budgets truncate the JSON
    llm_max_tokens: int = 8000
    llm_timeout_seconds: float = 120.0

    # Geocoding
    geocoding_api_key: SecretStr | None = None
    geocoding_base_url: str = "https://restapi.amap.com/v3/geocode/geo"
    geocoding_interval_ms: int = 400
    geocoding_timeout_seconds: float = 5.0
    geocode_workers: int = 4

    # Trips stuck in "generating" longer than this are treated as failed
    generation_stale_after_seconds: int = 600


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Typed settings configuration - single source of truth."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite+aiosqlite:///./tripsheet.db"
    trip_key: str = "default"

    # Trip
    trip_year: int = 2026
    trip_city: str = "New York City"
    trip_label: str = "NYC trip, Jan 14-18"
    hotel_name: str = "Untitled at 3 Freeman Alley, Lower East Side"
    hotel_lat: float = 40.7223
    hotel_lng: float = -73.9930
    traveler_preferences: str = ""
    seed_outline_path: str = "itinerary.txt"

    # Outline rendering
    outline_timed_markers: bool = True

    # Enrichment provider
    enrichment_provider: Literal["gemini", "openai", "stub"] = "gemini"
    gemini_api_key: SecretStr | None = None
    gemini_model: str = "gemini-2.5-flash"
    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o-mini"

    # Enrichment batching and retries
    enrichment_max_batch_size: int = 10
    enrichment_max_attempts: int = 3
    enrichment_backoff_seconds: float = 1.0
    enrichment_timeout_seconds: float = 60.0

    # Cached enrichment kept for text no longer in the document
    enrichment_cache_max_entries: int = 500


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Configuration settings for the Fuel Planner."""

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings


# Path calculations:
# __file__ = src/fuel_planner/config.py
# .parent.parent.parent = project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Intervals.icu
    intervals_api_key: str = ""
    intervals_athlete_id: str = "0"  # "0" means the athlete owning the key
    intervals_base_url: str = "https://intervals.icu/api/v1"
    request_timeout: float = 30.0
    max_retries: int = 3

    # History analysis
    lookback_days: int = 45
    stream_batch_size: int = 3
    stream_batch_delay: float = 0.1  # seconds between batches

    # Plan defaults
    default_lthr: int = 169
    default_prefix: str = "eco16"

    log_level: str = "INFO"

    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

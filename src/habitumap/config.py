"""Centralized settings for habitumap."""
from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "HABITUMAP_"}

    # Redis: empty string means in-memory store (graceful fallback)
    redis_url: str = ""

    # Supabase: empty strings mean the feed is disabled
    supabase_url: str = ""
    supabase_service_key: str = ""
    supabase_jwt_secret: str = ""

    # IANA zone for the daily reset boundary; empty means the host's local zone
    timezone: str = ""

    # Daily reset worker
    reset_check_interval_s: int = 60  # 1 min between boundary checks

    # Location delivery throttling (push provider)
    location_time_interval_s: float = 5.0     # min seconds between delivered samples
    location_distance_interval_m: float = 10.0  # min metres between delivered samples

    # Feed
    feed_limit: int = 20
    explore_limit: int = 50


settings = Settings()

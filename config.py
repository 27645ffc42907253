"""
Application configuration via pydantic-settings.
All config read from environment variables with sensible defaults for local dev.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    db_name: str = "db.sqlite3"
    # seconds a writer waits for BEGIN IMMEDIATE before "database is locked"
    db_busy_timeout_s: float = 15.0

    # Tokens
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    admin_emails: List[str] = []

    # CORS
    cors_origins: List[str] = ["http://localhost:5173"]

    # Object storage
    upload_folder: str = "uploads"
    image_max_bytes: int = 5 * 1024 * 1024  # 5MB
    video_max_bytes: int = 500_000_000  # 500MB

    # OpenTripMap
    opentripmap_api_key: str = ""
    opentripmap_url: str = "https://api.opentripmap.com/0.1/en/places"
    external_api_timeout_s: float = 10.0
    places_cache_ttl_s: int = 60 * 60

    # Chat
    chat_poll_interval_s: int = 5

    log_level: str = "INFO"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()

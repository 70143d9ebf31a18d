from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from framevault.core.version import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    APP_ENV: Literal["development", "production", "test"] = "production"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    TMDB_API_KEY: str | None = None
    TMDB_LANGUAGE: str = "en-US"

    REDIS_URL: str = "redis://redis:6379/0"
    # Maximum number of connections Redis client will open per process
    REDIS_MAX_CONNECTIONS: int = 20
    RATE_LIMIT_KEY_PREFIX: str = "framevault:ratelimit:"
    # "redis" keeps counters in Redis, "supabase" in the tmdb_rate_limit table
    RATE_LIMIT_BACKEND: Literal["redis", "supabase"] = "redis"

    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    # Upper bound for a single history/catalog call before we treat it as unavailable
    UPSTREAM_TIMEOUT_SECONDS: float = 4.0

    SMART_PICKS_USER_LIMIT: int = 30
    SMART_PICKS_IP_LIMIT: int = 60

    CATALOG_GENRE_CACHE_TTL_SECONDS: int = 21600  # 6 hours
    CATALOG_GENRE_CACHE_SIZE: int = 5000


settings = Settings()

APP_VERSION = __version__

"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # FPL API
    fpl_api_base_url: str = "https://fantasy.premierleague.com/api"
    request_timeout: float = 12.0  # seconds, per request
    max_attempts: int = 3
    retry_backoff_base: float = 1.0  # seconds, doubles per attempt
    retry_backoff_max: float = 8.0
    retry_jitter: float = 0.5
    max_concurrent_requests: int = 5

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Logging
    log_level: str = "INFO"

    # Cache TTL in seconds
    cache_ttl_bootstrap: int = 300  # 5 minutes for bootstrap-static
    cache_ttl_live: int = 600  # 10 minutes for event live data
    cache_ttl_summary: int = 300  # 5 minutes per manager summary
    summary_cache_size: int = 1000

    # Inbound rate limiting (per client IP, fixed window)
    rate_limit_window: int = 60
    rate_limit_max_requests: int = 30

    # Season data collection
    gameweek_window: int = 10  # trailing finished gameweeks to fetch picks/live for
    gameweek_fetch_delay: float = 0.3  # seconds between gameweeks
    default_current_gameweek: int = 20

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Configuration settings for the CRM assistant service."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service identification
    service_name: str = "crm-assistant"
    debug: bool = False

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 5001

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"
    log_request_headers: bool = False

    # Business data API (leads, partners, products, orders)
    data_api_url: str = "http://localhost:5000"

    # Cache store (read-only here, populated by the data API prefetch)
    redis_url: str = "redis://localhost:6379/0"
    cache_timeout: float = 2.0  # seconds

    # Per-dataset deadlines (milliseconds)
    catalog_fetch_timeout_ms: int = 8000  # partners, products
    leads_fetch_timeout_ms: int = 8000
    activities_fetch_timeout_ms: int = 6000
    orders_fetch_timeout_ms: int = 6000

    # Gemini model
    gemini_api_key: str = ""
    gemini_url: str = "https://generativelanguage.googleapis.com"
    gemini_model: str = "gemini-2.5-flash"
    generation_temperature: float = 0.7
    generation_max_output_tokens: int = 1500
    generation_timeout: float = 120.0  # seconds

    # CORS configuration
    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_prefix="CRM_ASSISTANT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

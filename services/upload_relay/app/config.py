"""Upload Relay configuration via environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class Settings(BaseSettings):
    """Upload Relay configuration.

    Read once at startup and frozen; the instance is handed to the
    orchestrator and routes through ``app.state``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars not defined in this model
        frozen=True,
    )

    # Service settings
    service_name: str = "upload-relay"
    environment: str = "production"  # upstream error details only when set to development
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True
    host: str = "0.0.0.0"
    port: int = 3000

    # Shopify Admin API settings
    shopify_shop: str = "thereadcounts.myshopify.com"
    shopify_access_token: str = Field(..., min_length=1, repr=False)
    shopify_api_version: str = "2025-10"
    http_timeout_seconds: float = 60.0

    # Upload settings
    max_upload_size_bytes: int = 20 * MIB

    # CORS settings (exact origins)
    cors_origins: list[str] = [
        "https://thereadcounts.myshopify.com",
        "https://thereadcounts.com",
        "http://localhost:9292",  # Shopify CLI theme dev server
    ]

    @property
    def is_development(self) -> bool:
        """Whether upstream error details may be echoed to clients."""
        return self.environment.lower() in ("development", "dev")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

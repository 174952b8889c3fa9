"""
Configuration management for the Rossby-Vis gateway.
Loads environment variables and provides typed configuration.
"""
from typing import List, Optional
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

API_VERSION = "0.1.0"
LOG_FORMATS = ("text", "json", "compact")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ========================================================================
    # Backend (Rossby data server)
    # ========================================================================
    api_url: str = "http://localhost:8000"
    # None leaves httpx's own timeout defaults in place
    backend_timeout: Optional[float] = None
    stream_chunk_size: int = 64 * 1024

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    # ========================================================================
    # Server Configuration
    # ========================================================================
    api_host: str = "127.0.0.1"
    api_port: int = 8080
    static_dir: Optional[str] = "public"

    # ========================================================================
    # CORS Configuration
    # ========================================================================
    cors_origins: str = "*"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ========================================================================
    # Security Configuration
    # ========================================================================
    enable_hsts: bool = False

    # ========================================================================
    # Monitoring Configuration
    # ========================================================================
    enable_metrics: bool = True
    metrics_interval_seconds: float = 30.0

    # ========================================================================
    # Application Configuration
    # ========================================================================
    environment: str = "development"
    service_name: str = "rossby-vis"
    log_level: str = "info"
    log_format: str = "text"

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value == "pretty":
            value = "text"
        if value not in LOG_FORMATS:
            raise ValueError(
                f"Invalid log format: {value}. Valid options: {', '.join(LOG_FORMATS)}"
            )
        return value

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"

    # ========================================================================
    # Pydantic Settings Configuration
    # ========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()

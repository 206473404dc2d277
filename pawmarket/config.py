"""
Configuration management for PawMarket.
Loads settings from environment variables and provides typed configuration access.
"""

from pathlib import Path
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Settings
    log_level: str = Field(default="INFO", description="Logging level")

    # REST API
    api_base_url: str = Field(
        default="http://localhost:5000/api",
        description="Marketplace REST API base URL"
    )
    api_timeout: float = Field(default=15.0, description="API request timeout in seconds")
    app_base_url: str = Field(
        default="http://localhost:3000",
        description="Public web app URL used for share links"
    )

    # Session storage
    session_file: Optional[Path] = Field(
        default=Path.home() / ".pawmarket" / "session.json",
        description="Where the auth session is persisted (None keeps it in memory)"
    )

    # Discovery Settings
    page_size: int = Field(default=12, ge=1, description="Pets per page in the main grid")
    featured_limit: int = Field(default=8, ge=1, description="Pets shown per featured section")
    nearby_radius_km: int = Field(default=10, ge=1, description="Radius for nearby pets in km")

    # Upload Settings
    max_upload_images: int = Field(default=5, description="Maximum images per upload request")
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum size of a single uploaded image"
    )

    # Notifications
    toast_duration: float = Field(default=4.0, description="Toast display time in seconds")


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


# Convenience access
settings = get_settings()

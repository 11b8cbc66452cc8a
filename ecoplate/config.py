"""Configuration management for the reservation engine."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Redis Configuration
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL")

    # API Configuration
    api_port: int = Field(default=8000, description="API server port")
    api_host: str = Field(default="0.0.0.0", description="API server host")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log format")

    # Pickup Codes
    pickup_code_alphabet: str = Field(
        default="ABCDEFGHJKLMNPQRSTUVWXYZ23456789",
        description="Code alphabet without 0/O/1/I",
    )
    pickup_code_length: int = Field(default=6, description="Pickup code length")
    pickup_code_max_attempts: int = Field(
        default=20, description="Collision retries before giving up on allocation"
    )
    qr_prefix: str = Field(default="ECOPLATE", description="QR payload prefix")

    # Drop Settings
    default_drop_description: str = Field(
        default="Tonight's Rescue Box - freshly prepared by dining staff.",
        description="Description used when a drop is posted without one",
    )
    default_location_caps: dict[str, int] = Field(
        default={"Anteatery": 30, "Brandywine": 25},
        description="Daily box cap per location before admins raise it",
    )

    # No-show Settings
    repeat_offender_threshold: int = Field(
        default=2, description="Lifetime no-shows before a session is flagged"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages


class PlaybackSettings(BaseModel):
    """Play lifecycle timing and retry configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    retry_limit: int = Field(default=3, ge=1, le=10)
    play_start_timeout: float = Field(
        default=10.0,
        gt=0,
        validation_alias=AliasChoices("play_start_timeout", "start_timeout"),
    )
    stop_timeout: float = Field(default=10.0, gt=0)
    finish_timeout: float = Field(default=20.0, gt=0)
    idle_disconnect_seconds: float = Field(
        default=600.0,
        gt=0,
        validation_alias=AliasChoices("idle_disconnect_seconds", "idle_timeout"),
    )
    live_poll_interval: float = Field(default=10.0, gt=0)
    default_volume: int = Field(default=100, ge=0, le=200)


class AudioSettings(BaseModel):
    """FFmpeg and yt-dlp configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    before_options: str = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
    options: str = "-vn"
    ytdlp_format: str = "bestaudio/best"
    max_bitrate_kbps: int = Field(
        default=512,
        ge=8,
        le=512,
        validation_alias=AliasChoices("max_bitrate_kbps", "max_bitrate"),
    )
    ffmpeg_executable: str = "ffmpeg"


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - PLAYBACK__RETRY_LIMIT, PLAYBACK__IDLE_DISCONNECT_SECONDS, etc.
    - AUDIO__BEFORE_OPTIONS, AUDIO__MAX_BITRATE_KBPS, etc.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()

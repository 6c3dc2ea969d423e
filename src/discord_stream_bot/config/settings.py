"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import (
    ChannelCount,
    ChunkSizeBytes,
    CommandPrefixStr,
    ConnectTimeoutS,
    NonEmptyStr,
    SampleRateHz,
)
from ..domain.shared.validators import validate_discord_snowflake


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: CommandPrefixStr = Field(
        default="!",
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )
    test_guild_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("test_guild_ids", "test_guilds")
    )
    sync_on_startup: bool = True

    @field_validator("test_guild_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: tuple[int, ...] | list[int]) -> tuple[int, ...]:
        """Validate Discord snowflake IDs and convert lists to tuples."""
        # Convert list to tuple if needed (from JSON array in env vars)
        if isinstance(v, list):
            v = tuple(v)
        for snowflake in v:
            validate_discord_snowflake(snowflake)
        return v


class AudioSettings(BaseModel):
    """Fetch/transcode pipeline and resolver configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    ytdlp_path: NonEmptyStr = Field(
        default="yt-dlp", validation_alias=AliasChoices("ytdlp_path", "ytdlp")
    )
    ffmpeg_path: NonEmptyStr = Field(
        default="ffmpeg", validation_alias=AliasChoices("ffmpeg_path", "ffmpeg")
    )
    ytdlp_format: NonEmptyStr = "bestaudio/best"
    # The android client avoids the rate limiting applied to automated web fetches
    player_client: NonEmptyStr = "android"
    sample_rate: SampleRateHz = 48000
    channels: ChannelCount = 2
    read_chunk_size: ChunkSizeBytes = 64 * 1024
    lookup_link_titles: bool = True


class VoiceSettings(BaseModel):
    """Voice connection configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    connect_timeout_seconds: ConnectTimeoutS = Field(
        default=30.0,
        validation_alias=AliasChoices("connect_timeout_seconds", "connect_timeout"),
    )
    self_deaf: bool = True


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__TEST_GUILD_IDS, etc. (nested with delimiter)
    - AUDIO__FFMPEG_PATH, AUDIO__YTDLP_PATH, AUDIO__PLAYER_CLIENT, ...
    - VOICE__CONNECT_TIMEOUT_SECONDS
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

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    voice: VoiceSettings = Field(default_factory=VoiceSettings)

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

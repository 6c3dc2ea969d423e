"""Command for skipping the current track."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from discord_stream_bot.domain.shared.types import DiscordSnowflake


class SkipTrackCommand(BaseModel):
    """Stop the in-flight track; the next queued track starts automatically."""

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake

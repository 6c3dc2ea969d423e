"""Command for leaving voice and resetting the guild session."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from discord_stream_bot.domain.shared.types import DiscordSnowflake


class LeaveChannelCommand(BaseModel):
    """Clear the queue, kill the pipeline, and release the voice connection."""

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake

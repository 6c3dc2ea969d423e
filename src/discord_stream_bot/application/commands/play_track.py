"""Command for playing a track from a query or URL."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_stream_bot.domain.shared.types import DiscordSnowflake, NonEmptyStr


class PlayTrackCommand(BaseModel):
    """Request to resolve a query/URL, queue the track, and start playback if idle."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    guild_id: DiscordSnowflake
    # The caller's voice channel; joined when the guild has no voice session yet
    channel: Any = Field(repr=False)
    query: NonEmptyStr

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v

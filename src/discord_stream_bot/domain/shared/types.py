"""Reusable Pydantic Annotated types for domain-wide validation.

Every constrained type used across the bot is defined here once,
so models can simply annotate their fields::

    from discord_stream_bot.domain.shared.types import DiscordSnowflake, NonEmptyStr

    class MyModel(BaseModel):
        guild_id: DiscordSnowflake
        reference: NonEmptyStr
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

# ── Numeric constraints ─────────────────────────────────────────────

DiscordSnowflake = Annotated[int, Field(gt=0, lt=2**64)]
"""Positive integer that fits a Discord snowflake (1 … 2^64-1)."""

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

TrackTitleStr = Annotated[str, Field(min_length=1, max_length=500)]
"""Track title: 1-500 characters."""


# ── Settings-specific constraints ──────────────────────────────────

CommandPrefixStr = Annotated[str, Field(min_length=1, max_length=5)]
"""Bot command prefix: 1-5 characters."""

ConnectTimeoutS = Annotated[float, Field(ge=1.0, le=120.0)]
"""Voice connect timeout in seconds: 1 … 120."""

SampleRateHz = Annotated[int, Field(ge=8000, le=192_000)]
"""PCM sample rate in Hz."""

ChannelCount = Annotated[int, Field(ge=1, le=2)]
"""PCM channel count: mono or stereo."""

ChunkSizeBytes = Annotated[int, Field(ge=1024, le=4 * 1024 * 1024)]
"""Copy-loop chunk size: 1 KiB … 4 MiB."""

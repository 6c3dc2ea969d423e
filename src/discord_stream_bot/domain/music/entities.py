"""Core domain entities for the playback context."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from discord_stream_bot.domain.shared.types import NonEmptyStr, NonNegativeInt, TrackTitleStr
from discord_stream_bot.domain.shared.validators import strip_or_empty


class QueueItem(BaseModel):
    """Immutable value object representing one queued track.

    ``reference`` is whatever the fetch process needs to locate the media
    (usually a watch URL); ``title`` is only for display.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    reference: NonEmptyStr
    title: TrackTitleStr

    @field_validator("reference", mode="before")
    @classmethod
    def _strip_reference(cls, v: Any) -> Any:
        return strip_or_empty(v)

    @field_validator("title", mode="before")
    @classmethod
    def _clip_title(cls, v: Any) -> Any:
        """Long titles are clipped rather than rejected."""
        v = strip_or_empty(v)
        if isinstance(v, str) and len(v) > 500:
            return v[:499] + "…"
        return v


class PlayResult(BaseModel):
    """Acknowledgment returned by a play request."""

    model_config = ConfigDict(frozen=True, strict=True)

    item: QueueItem
    queue_length: NonNegativeInt = 0
    discarded: bool = False

    @property
    def started(self) -> bool:
        """True when the item went straight to the pipeline instead of waiting."""
        return not self.discarded and self.queue_length == 0

    @property
    def position(self) -> int:
        """One-based position counting the track that is currently playing."""
        return self.queue_length + 1

    @property
    def title(self) -> str:
        return self.item.title

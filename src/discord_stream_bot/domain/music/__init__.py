"""
Playback Bounded Context

Domain types for queued tracks and per-guild playback state.
"""

from discord_stream_bot.domain.music.entities import PlayResult, QueueItem
from discord_stream_bot.domain.music.value_objects import (
    SessionMessage,
    SessionState,
    SinkEvent,
    SinkEventKind,
)

__all__ = [
    # Entities
    "QueueItem",
    "PlayResult",
    # Value Objects
    "SessionState",
    "SinkEvent",
    "SinkEventKind",
    "SessionMessage",
]

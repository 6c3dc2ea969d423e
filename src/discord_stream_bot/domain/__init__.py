"""
Domain Layer

Contains pure playback types organized by bounded contexts:
- shared/: Cross-cutting types, messages and exceptions
- music/: Queue items, session states and sink events
"""

from discord_stream_bot.domain.music import PlayResult, QueueItem, SessionState
from discord_stream_bot.domain.shared.exceptions import DomainError

__all__ = [
    "QueueItem",
    "PlayResult",
    "SessionState",
    "DomainError",
]

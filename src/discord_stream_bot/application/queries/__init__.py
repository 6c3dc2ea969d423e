"""
Application Queries (CQRS Read Side)

Query objects and handlers for read operations.
Queries do not modify state, only retrieve data.
"""

from discord_stream_bot.application.queries.get_queue import (
    GetQueueHandler,
    GetQueueQuery,
    QueueInfo,
)

__all__ = [
    "GetQueueHandler",
    "GetQueueQuery",
    "QueueInfo",
]

"""Query for retrieving the state of a guild's queue."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from discord_stream_bot.domain.music.entities import QueueItem
from discord_stream_bot.domain.music.value_objects import SessionState
from discord_stream_bot.domain.shared.types import DiscordSnowflake, NonNegativeInt

if TYPE_CHECKING:
    from ..services.session_registry import SessionRegistry


class GetQueueQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake


class QueueInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    waiting: NonNegativeInt = 0
    current: QueueItem | None = None
    state: SessionState = SessionState.IDLE

    @property
    def is_empty(self) -> bool:
        return self.waiting == 0


class GetQueueHandler:
    def __init__(self, *, registry: SessionRegistry) -> None:
        self._registry = registry

    async def handle(self, query: GetQueueQuery) -> QueueInfo:
        session = self._registry.get(query.guild_id)

        if session is None:
            return QueueInfo(guild_id=query.guild_id)

        return QueueInfo(
            guild_id=query.guild_id,
            waiting=session.queue_length,
            current=session.current,
            state=session.state,
        )

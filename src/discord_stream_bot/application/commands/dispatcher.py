"""
Command Dispatcher

Routes inbound commands to the guild's playback session and turns the outcome
into the reply shown to the user. Errors that happen before the user is
acknowledged (resolution, voice connect) become error replies; anything else
propagates to the bot's error handler.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from discord_stream_bot.application.commands.leave_channel import LeaveChannelCommand
from discord_stream_bot.application.commands.play_track import PlayTrackCommand
from discord_stream_bot.application.commands.skip_track import SkipTrackCommand
from discord_stream_bot.application.queries.get_queue import (
    GetQueueHandler,
    GetQueueQuery,
)
from discord_stream_bot.domain.shared.exceptions import ResolutionError, VoiceConnectError
from discord_stream_bot.domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from ..services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

Command = PlayTrackCommand | SkipTrackCommand | LeaveChannelCommand | GetQueueQuery


class CommandReply(BaseModel):
    """Text to send back to the invoking user."""

    model_config = ConfigDict(frozen=True)

    content: str
    ephemeral: bool = False

    @classmethod
    def error(cls, message: str) -> CommandReply:
        return cls(content=DiscordUIMessages.ERROR_GENERIC.format(error=message), ephemeral=True)


class CommandDispatcher:
    """Executes commands against sessions held by an explicitly owned registry."""

    def __init__(self, registry: SessionRegistry) -> None:
        self._registry = registry
        self._queue_handler = GetQueueHandler(registry=registry)

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    async def dispatch(self, command: Command) -> CommandReply:
        if isinstance(command, PlayTrackCommand):
            return await self.play(command)
        if isinstance(command, SkipTrackCommand):
            return await self.skip(command)
        if isinstance(command, LeaveChannelCommand):
            return await self.leave(command)
        if isinstance(command, GetQueueQuery):
            return await self.queue(command)
        raise TypeError(f"Unsupported command: {type(command).__name__}")

    async def play(self, command: PlayTrackCommand) -> CommandReply:
        session = self._registry.get_or_create(command.guild_id)

        try:
            result = await session.play(command.channel, command.query)
        except (ResolutionError, VoiceConnectError) as e:
            logger.warning(LogTemplates.COMMAND_FAILED, "play", command.guild_id, e.message)
            return CommandReply.error(e.message)

        if result.discarded:
            return CommandReply(content=DiscordUIMessages.PLAY_DISCARDED.format(title=result.title))
        if result.started:
            return CommandReply(content=DiscordUIMessages.PLAY_NOW_PLAYING.format(title=result.title))
        return CommandReply(
            content=DiscordUIMessages.PLAY_ADDED_TO_QUEUE.format(
                title=result.title, position=result.position
            )
        )

    async def skip(self, command: SkipTrackCommand) -> CommandReply:
        session = self._registry.get(command.guild_id)
        if session is None or not await session.skip():
            return CommandReply(content=DiscordUIMessages.SKIP_NOTHING, ephemeral=True)
        return CommandReply(content=DiscordUIMessages.SKIP_SUCCESS)

    async def leave(self, command: LeaveChannelCommand) -> CommandReply:
        session = self._registry.get(command.guild_id)
        if session is None or not await session.disconnect():
            return CommandReply(content=DiscordUIMessages.LEAVE_NOT_CONNECTED, ephemeral=True)
        return CommandReply(content=DiscordUIMessages.LEAVE_SUCCESS)

    async def queue(self, query: GetQueueQuery) -> CommandReply:
        info = await self._queue_handler.handle(query)
        if info.is_empty:
            return CommandReply(content=DiscordUIMessages.QUEUE_EMPTY)
        return CommandReply(content=DiscordUIMessages.QUEUE_WAITING.format(count=info.waiting))

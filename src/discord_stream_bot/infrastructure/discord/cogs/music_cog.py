"""Slash-command music cog delegating to the command dispatcher."""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from discord_stream_bot.application.commands import (
    CommandReply,
    LeaveChannelCommand,
    PlayTrackCommand,
    SkipTrackCommand,
)
from discord_stream_bot.application.queries import GetQueueQuery
from discord_stream_bot.domain.shared.messages import DiscordUIMessages, ErrorMessages
from discord_stream_bot.infrastructure.discord.guards import (
    get_user_voice_channel,
    send_ephemeral,
)

if TYPE_CHECKING:
    from ....config.container import Container


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def _send_reply(self, interaction: discord.Interaction, reply: CommandReply) -> None:
        if interaction.response.is_done():
            # The first followup replaces the public "thinking" message, so it cannot be private
            await interaction.followup.send(reply.content)
        else:
            await interaction.response.send_message(reply.content, ephemeral=reply.ephemeral)

    @app_commands.command(name="play", description="Play a song by URL or search query.")
    @app_commands.describe(query="YouTube URL or search query")
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        channel = await get_user_voice_channel(interaction)
        if channel is None or interaction.guild is None:
            return

        if not query.strip():
            await send_ephemeral(
                interaction, DiscordUIMessages.ERROR_GENERIC.format(error=ErrorMessages.EMPTY_QUERY)
            )
            return

        # Defer because resolution and the first voice connect can exceed the 3-second deadline
        await interaction.response.defer(thinking=True)

        reply = await self.container.dispatcher.play(
            PlayTrackCommand(guild_id=interaction.guild.id, channel=channel, query=query)
        )
        await self._send_reply(interaction, reply)

    @app_commands.command(name="skip", description="Skip the current song.")
    async def skip(self, interaction: discord.Interaction) -> None:
        if await get_user_voice_channel(interaction) is None or interaction.guild is None:
            return

        reply = await self.container.dispatcher.skip(
            SkipTrackCommand(guild_id=interaction.guild.id)
        )
        await self._send_reply(interaction, reply)

    @app_commands.command(name="leave", description="Disconnect and clear the queue.")
    async def leave(self, interaction: discord.Interaction) -> None:
        if await get_user_voice_channel(interaction) is None or interaction.guild is None:
            return

        reply = await self.container.dispatcher.leave(
            LeaveChannelCommand(guild_id=interaction.guild.id)
        )
        await self._send_reply(interaction, reply)

    @app_commands.command(name="queue", description="Show how many songs are waiting.")
    async def queue(self, interaction: discord.Interaction) -> None:
        if await get_user_voice_channel(interaction) is None or interaction.guild is None:
            return

        reply = await self.container.dispatcher.queue(GetQueueQuery(guild_id=interaction.guild.id))
        await self._send_reply(interaction, reply)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))

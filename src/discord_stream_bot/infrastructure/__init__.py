"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Discord (bot, cogs, voice adapter)
- Audio (yt-dlp resolver, yt-dlp/ffmpeg stream pipeline)
"""

from discord_stream_bot.infrastructure.discord.adapters.voice_adapter import DiscordVoiceTransport
from discord_stream_bot.infrastructure.discord.bot import create_bot

__all__ = [
    "create_bot",
    "DiscordVoiceTransport",
]

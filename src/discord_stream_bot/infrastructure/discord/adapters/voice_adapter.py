"""Discord voice adapter implementing the voice transport, connection, and sink ports."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import IO, Any

import discord

from discord_stream_bot.application.interfaces.voice_adapter import (
    AudioSink,
    SinkListener,
    VoiceConnection,
    VoiceTransport,
)
from discord_stream_bot.config.settings import VoiceSettings
from discord_stream_bot.domain.music.value_objects import SinkEvent
from discord_stream_bot.domain.shared.exceptions import SinkError, VoiceConnectError
from discord_stream_bot.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)


class _MonitoredPCMAudio(discord.PCMAudio):
    """PCMAudio that reports the first frame it hands to the player."""

    def __init__(self, stream: IO[bytes], on_first_frame: Callable[[], None]) -> None:
        super().__init__(stream)
        self._on_first_frame = on_first_frame
        self._started = False

    def read(self) -> bytes:
        data = super().read()
        if data and not self._started:
            self._started = True
            self._on_first_frame()
        return data


class DiscordAudioSink(AudioSink):
    """Plays raw PCM through the voice client of the connection it is bound to."""

    def __init__(self) -> None:
        self._connection: DiscordVoiceConnection | None = None

    def bind(self, connection: DiscordVoiceConnection) -> None:
        self._connection = connection

    def _voice_client(self) -> discord.VoiceClient | None:
        return self._connection.voice_client if self._connection else None

    def play(self, stream: IO[bytes], listener: SinkListener) -> None:
        if self._connection is None:
            raise SinkError(ErrorMessages.SINK_NOT_SUBSCRIBED)

        vc = self._voice_client()
        if vc is None or not vc.is_connected():
            raise SinkError(ErrorMessages.VOICE_NOT_READY)

        guild_id = self._connection.guild_id

        def after(error: Exception | None) -> None:
            logger.debug(LogTemplates.SINK_FINISHED, guild_id, error)
            listener(SinkEvent.finished(error))

        source = _MonitoredPCMAudio(stream, on_first_frame=lambda: listener(SinkEvent.started()))
        try:
            vc.play(source, after=after)
        except discord.ClientException as e:
            raise SinkError(str(e), original=e) from e

    def stop(self) -> None:
        vc = self._voice_client()
        if vc is not None and (vc.is_playing() or vc.is_paused()):
            vc.stop()

    def is_playing(self) -> bool:
        vc = self._voice_client()
        return vc is not None and vc.is_playing()


class DiscordVoiceConnection(VoiceConnection):
    """A voice session in one channel, backed by discord.py's VoiceClient."""

    def __init__(
        self,
        channel: discord.VoiceChannel | discord.StageChannel,
        *,
        self_deaf: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self._channel = channel
        self._self_deaf = self_deaf
        self._timeout = timeout
        self._client: discord.VoiceClient | None = None

    @property
    def guild_id(self) -> int:
        return self._channel.guild.id

    @property
    def voice_client(self) -> discord.VoiceClient | None:
        return self._client

    async def wait_ready(self) -> None:
        guild = self._channel.guild
        existing = guild.voice_client

        if isinstance(existing, discord.VoiceClient) and not existing.is_connected():
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, guild.id)
            await existing.disconnect(force=True)
            existing = None

        if isinstance(existing, discord.VoiceClient):
            if existing.channel is None or existing.channel.id != self._channel.id:
                await existing.move_to(self._channel)
            self._client = existing
        else:
            client = await self._channel.connect(
                timeout=self._timeout, reconnect=True, self_deaf=self._self_deaf
            )
            if not isinstance(client, discord.VoiceClient):
                raise VoiceConnectError(self._channel.id, ErrorMessages.VOICE_NOT_READY)
            self._client = client

        if self._self_deaf:
            await self._ensure_self_deaf(guild)

    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected()

    async def _ensure_self_deaf(self, guild: discord.Guild) -> None:
        try:
            await guild.change_voice_state(channel=self._channel, self_deaf=True)
        except Exception as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)

    def subscribe(self, sink: AudioSink) -> None:
        if not isinstance(sink, DiscordAudioSink):
            raise TypeError(f"Cannot subscribe {type(sink).__name__} to a Discord voice connection")
        sink.bind(self)

    async def destroy(self) -> None:
        # A connect that timed out may still have registered a client on the guild
        vc: Any = self._client or self._channel.guild.voice_client
        self._client = None
        if vc is None:
            return

        await vc.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, self.guild_id)


class DiscordVoiceTransport(VoiceTransport):
    def __init__(self, settings: VoiceSettings | None = None) -> None:
        self._settings = settings or VoiceSettings()

    def join(self, channel: Any) -> DiscordVoiceConnection:
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            channel_id = getattr(channel, "id", None)
            raise VoiceConnectError(
                channel_id, ErrorMessages.CHANNEL_NOT_VOICE.format(channel_id=channel_id)
            )

        return DiscordVoiceConnection(
            channel,
            self_deaf=self._settings.self_deaf,
            timeout=self._settings.connect_timeout_seconds,
        )

    def create_sink(self) -> DiscordAudioSink:
        return DiscordAudioSink()

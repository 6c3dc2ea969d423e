"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the resolver, pipeline, voice transport, session
registry, and command dispatcher. Components are created on-demand and cached
for reuse throughout the application.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.commands.dispatcher import CommandDispatcher
    from ..application.interfaces.stream_pipeline import StreamPipeline
    from ..application.interfaces.track_resolver import TrackResolver
    from ..application.interfaces.voice_adapter import VoiceTransport
    from ..application.services.session_registry import SessionRegistry
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. The registry is owned
    here and handed to the dispatcher; nothing else holds sessions.
    """

    settings: Settings
    _bot: Bot | None = None

    # Infrastructure adapters
    _track_resolver: TrackResolver | None = None
    _stream_pipeline: StreamPipeline | None = None
    _voice_transport: VoiceTransport | None = None

    # Application services
    _session_registry: SessionRegistry | None = None
    _dispatcher: CommandDispatcher | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Infrastructure Adapters ===

    @property
    def track_resolver(self) -> TrackResolver:
        """Get the yt-dlp track resolver."""
        if self._track_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpTrackResolver

            self._track_resolver = YtDlpTrackResolver(self.settings.audio)
        return self._track_resolver

    @property
    def stream_pipeline(self) -> StreamPipeline:
        """Get the yt-dlp/ffmpeg subprocess pipeline."""
        if self._stream_pipeline is None:
            from ..infrastructure.audio.stream_pipeline import (
                PipelineConfig,
                SubprocessStreamPipeline,
            )

            self._stream_pipeline = SubprocessStreamPipeline(
                PipelineConfig.from_settings(self.settings.audio)
            )
        return self._stream_pipeline

    @property
    def voice_transport(self) -> VoiceTransport:
        """Get the Discord voice transport."""
        if self._voice_transport is None:
            from ..infrastructure.discord.adapters.voice_adapter import (
                DiscordVoiceTransport,
            )

            self._voice_transport = DiscordVoiceTransport(self.settings.voice)
        return self._voice_transport

    # === Application Services ===

    @property
    def session_registry(self) -> SessionRegistry:
        """Get the per-guild session registry."""
        if self._session_registry is None:
            from ..application.services.playback_session import PlaybackSession
            from ..application.services.session_registry import SessionRegistry

            factory = partial(
                PlaybackSession,
                resolver=self.track_resolver,
                pipeline=self.stream_pipeline,
                transport=self.voice_transport,
                connect_timeout=self.settings.voice.connect_timeout_seconds,
            )
            self._session_registry = SessionRegistry(factory)
        return self._session_registry

    @property
    def dispatcher(self) -> CommandDispatcher:
        """Get the command dispatcher."""
        if self._dispatcher is None:
            from ..application.commands.dispatcher import CommandDispatcher

            self._dispatcher = CommandDispatcher(self.session_registry)
        return self._dispatcher

    # === Lifecycle ===

    async def shutdown(self) -> None:
        """Disconnect every session and drop cached components."""
        if self._session_registry is not None:
            await self._session_registry.close_all()

        self._dispatcher = None
        self._session_registry = None


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)

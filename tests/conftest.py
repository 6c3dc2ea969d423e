import asyncio
from functools import partial
from io import BytesIO
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from discord_stream_bot.application.interfaces.stream_pipeline import (
    PipelineHandle,
    StreamPipeline,
)
from discord_stream_bot.application.interfaces.track_resolver import TrackResolver
from discord_stream_bot.application.interfaces.voice_adapter import (
    AudioSink,
    VoiceConnection,
    VoiceTransport,
)
from discord_stream_bot.domain.music.entities import QueueItem
from discord_stream_bot.domain.music.value_objects import SinkEvent
from discord_stream_bot.domain.shared.exceptions import PipelineError

# ============================================================================
# Fakes
# ============================================================================


class FakeResolver(TrackResolver):
    """Resolves ``q`` to ``ref-q`` titled ``Video q``; can fail or block per query."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.errors: dict[str, Exception] = {}
        self.gate: asyncio.Event | None = None

    def is_direct_link(self, query: str) -> bool:
        return query.startswith("https://")

    async def resolve(self, query: str) -> QueueItem:
        self.calls.append(query)
        if self.gate is not None:
            await self.gate.wait()
        if query in self.errors:
            raise self.errors[query]
        return QueueItem(reference=f"ref-{query}", title=f"Video {query}")


class FakeHandle(PipelineHandle):
    def __init__(self, reference: str, on_error) -> None:
        self.reference = reference
        self.on_error = on_error
        self._stdout = BytesIO(b"\x00" * 3840)
        self.close_calls = 0

    @property
    def stdout(self):
        return self._stdout

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def close(self) -> None:
        self.close_calls += 1


class FakePipeline(StreamPipeline):
    """Records every start; references in ``fail_on`` fail to spawn."""

    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []
        self.fail_on: set[str] = set()

    @property
    def references(self) -> list[str]:
        return [h.reference for h in self.handles]

    def start(self, reference: str, on_error) -> FakeHandle:
        if reference in self.fail_on:
            raise PipelineError("yt-dlp", "failed to start yt-dlp: not found")
        handle = FakeHandle(reference, on_error)
        self.handles.append(handle)
        return handle


class FakeSink(AudioSink):
    """In-memory sink; ``stop`` and ``finish`` report IDLE like a real player."""

    def __init__(self) -> None:
        self.streams: list = []
        self.listener = None
        self.refuse: Exception | None = None
        self.stop_calls = 0
        self._playing = False

    def play(self, stream, listener) -> None:
        if self.refuse is not None:
            raise self.refuse
        self.streams.append(stream)
        self.listener = listener
        self._playing = True

    def stop(self) -> None:
        self.stop_calls += 1
        if self._playing:
            self.finish()

    def is_playing(self) -> bool:
        return self._playing

    def finish(self, error: BaseException | None = None) -> None:
        """Simulate the stream running out (or failing)."""
        self._playing = False
        self.listener(SinkEvent.finished(error))

    def emit_started(self) -> None:
        self.listener(SinkEvent.started())


class FakeConnection(VoiceConnection):
    def __init__(self, guild_id: int = 111) -> None:
        self._guild_id = guild_id
        self.hang: asyncio.Event | None = None
        self.ready_error: Exception | None = None
        self.destroy_error: Exception | None = None
        self.subscribed: list[AudioSink] = []
        self.destroy_calls = 0
        self.connected = True

    @property
    def guild_id(self) -> int:
        return self._guild_id

    async def wait_ready(self) -> None:
        if self.hang is not None:
            await self.hang.wait()
        if self.ready_error is not None:
            raise self.ready_error

    def is_connected(self) -> bool:
        return self.connected

    def subscribe(self, sink: AudioSink) -> None:
        self.subscribed.append(sink)

    async def destroy(self) -> None:
        self.destroy_calls += 1
        if self.destroy_error is not None:
            raise self.destroy_error


class FakeTransport(VoiceTransport):
    """Hands out ``next_connection`` (or a fresh FakeConnection) per join."""

    def __init__(self) -> None:
        self.joins: list = []
        self.connections: list[FakeConnection] = []
        self.sinks: list[FakeSink] = []
        self.next_connection: FakeConnection | None = None

    @property
    def sink(self) -> FakeSink:
        return self.sinks[-1]

    def join(self, channel) -> FakeConnection:
        self.joins.append(channel)
        connection = self.next_connection or FakeConnection()
        self.next_connection = None
        self.connections.append(connection)
        return connection

    def create_sink(self) -> FakeSink:
        sink = FakeSink()
        self.sinks.append(sink)
        return sink


async def _settle(session, rounds: int = 5) -> None:
    """Let posted messages reach the inbox and the consumer drain it."""
    for _ in range(rounds):
        await asyncio.sleep(0)
        if session._inbox is not None:
            await session._inbox.join()


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def settle():
    """Awaitable helper that drains a session inbox."""
    return _settle


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def pipeline():
    return FakePipeline()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def voice_channel():
    channel = MagicMock()
    channel.id = 222
    return channel


@pytest.fixture
def session_factory(resolver, pipeline, transport):
    from discord_stream_bot.application.services.playback_session import PlaybackSession

    return partial(
        PlaybackSession,
        resolver=resolver,
        pipeline=pipeline,
        transport=transport,
        connect_timeout=0.05,
    )


@pytest_asyncio.fixture
async def session(session_factory):
    s = session_factory(111)
    yield s
    await s.close()


@pytest_asyncio.fixture
async def registry(session_factory):
    from discord_stream_bot.application.services.session_registry import SessionRegistry

    reg = SessionRegistry(session_factory)
    yield reg
    await reg.close_all()


@pytest.fixture
def dispatcher(registry):
    from discord_stream_bot.application.commands.dispatcher import CommandDispatcher

    return CommandDispatcher(registry)

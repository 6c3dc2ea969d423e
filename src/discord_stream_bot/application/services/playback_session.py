"""Per-guild playback session: queue, voice connection, sink, and the pipeline in flight.

Advancement is message driven. The sink (discord.py player thread) and the
pipeline watchers (worker threads) never touch session state directly; they post
a ``SessionMessage`` to the session inbox and a single consumer task applies it.
Each pipeline start gets a new sequence number so that late messages from a
superseded track are dropped.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any

from ...domain.music.entities import PlayResult, QueueItem
from ...domain.music.value_objects import SessionMessage, SessionState, SinkEvent, SinkEventKind
from ...domain.shared.exceptions import PipelineError, SinkError, VoiceConnectError
from ...domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ..interfaces.stream_pipeline import PipelineHandle, StreamPipeline
    from ..interfaces.track_resolver import TrackResolver
    from ..interfaces.voice_adapter import AudioSink, VoiceConnection, VoiceTransport

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT: float = 30.0


@dataclass(slots=True)
class _InFlight:
    sequence: int
    item: QueueItem
    handle: PipelineHandle


class PlaybackSession:
    """Owns one voice connection, one audio sink, and one FIFO queue for a guild."""

    def __init__(
        self,
        guild_id: int,
        *,
        resolver: TrackResolver,
        pipeline: StreamPipeline,
        transport: VoiceTransport,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        self._guild_id = guild_id
        self._resolver = resolver
        self._pipeline = pipeline
        self._transport = transport
        self._connect_timeout = connect_timeout

        self._queue: deque[QueueItem] = deque()
        self._connection: VoiceConnection | None = None
        self._sink: AudioSink | None = None
        self._in_flight: _InFlight | None = None
        self._state = SessionState.IDLE

        self._sequence = 0
        # Bumped by disconnect() so resolutions that straddle a reset are dropped
        self._epoch = 0

        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._inbox: asyncio.Queue[SessionMessage] | None = None
        self._consumer: asyncio.Task[None] | None = None

    # === Read-only state ===

    @property
    def guild_id(self) -> int:
        return self._guild_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._in_flight is not None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def current(self) -> QueueItem | None:
        return self._in_flight.item if self._in_flight else None

    @property
    def queue_length(self) -> int:
        """Tracks waiting to play, excluding the one in flight."""
        return len(self._queue)

    def get_queue_length(self) -> int:
        return self.queue_length

    # === Public operations ===

    async def play(self, channel: Any, query: str) -> PlayResult:
        """Resolve ``query``, queue it, and start playback if nothing is in flight.

        Returns once the item is queued; audio starts asynchronously.

        Raises:
            ResolutionError: the query could not be resolved; the queue is untouched.
            VoiceConnectError: the voice session never became ready; nothing is queued.
        """
        self._ensure_consumer()
        epoch = self._epoch

        item = await self._resolver.resolve(query)

        async with self._lock:
            if epoch != self._epoch:
                logger.info(LogTemplates.SESSION_RESOLUTION_DISCARDED, item.title, self._guild_id)
                return PlayResult(item=item, queue_length=len(self._queue), discarded=True)

            if self._connection is not None and not self._connection.is_connected():
                logger.warning(LogTemplates.VOICE_LOST, self._guild_id, len(self._queue))
                await self._drop_voice()

            if self._connection is None:
                await self._connect(channel)

            self._queue.append(item)
            logger.info(LogTemplates.SESSION_ENQUEUED, item.title, self._guild_id, len(self._queue))

            if self._in_flight is None:
                await self._advance()

            if self._connection is None:
                # Voice died while the sink was taking the stream; rejoin once
                try:
                    await self._connect(channel)
                except VoiceConnectError:
                    self._queue = deque(q for q in self._queue if q is not item)
                    raise
                await self._advance()

            return PlayResult(item=item, queue_length=len(self._queue))

    async def skip(self) -> bool:
        """Stop the current track; the sink's idle event advances the queue."""
        current = self._in_flight
        # An IDLE still waiting in the inbox means the track already ended
        if current is None or self._sink is None or not self._sink.is_playing():
            return False

        logger.info(LogTemplates.SESSION_SKIPPED, current.item.title, self._guild_id)
        self._sink.stop()
        return True

    async def disconnect(self) -> bool:
        """Clear the queue, kill the pipeline and release voice. Idempotent.

        Returns True if a voice connection was released.
        """
        async with self._lock:
            self._epoch += 1
            dropped = len(self._queue)
            self._queue.clear()

            had_track = self._in_flight is not None
            connection = self._connection
            await self._drop_voice()

            if connection is not None or had_track or dropped:
                logger.info(LogTemplates.SESSION_DISCONNECTED, self._guild_id, dropped)
            return connection is not None

    async def close(self) -> None:
        """Disconnect and stop the event consumer (process shutdown)."""
        await self.disconnect()

        consumer, self._consumer = self._consumer, None
        if consumer is not None and not consumer.done():
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer

    # === Voice ===

    async def _connect(self, channel: Any) -> None:
        self._state = SessionState.CONNECTING
        channel_id = getattr(channel, "id", None)
        logger.info(LogTemplates.VOICE_CONNECTING, channel_id, self._guild_id)

        connection: VoiceConnection | None = None
        try:
            connection = self._transport.join(channel)
            async with asyncio.timeout(self._connect_timeout):
                await connection.wait_ready()
        except TimeoutError as e:
            error = VoiceConnectError(
                channel_id,
                ErrorMessages.VOICE_CONNECT_TIMEOUT.format(timeout=self._connect_timeout),
            )
            await self._abort_connect(connection, error)
            raise error from e
        except VoiceConnectError as e:
            await self._abort_connect(connection, e)
            raise
        except Exception as e:
            error = VoiceConnectError(channel_id, ErrorMessages.VOICE_CONNECT_FAILED.format(error=e))
            await self._abort_connect(connection, error)
            raise error from e

        sink = self._transport.create_sink()
        connection.subscribe(sink)
        self._connection = connection
        self._sink = sink
        self._state = SessionState.ADVANCING
        logger.info(LogTemplates.VOICE_CONNECTED, channel_id, self._guild_id)

    async def _abort_connect(
        self, connection: VoiceConnection | None, error: VoiceConnectError
    ) -> None:
        logger.error(LogTemplates.VOICE_CONNECT_FAILED, self._guild_id, error.message)
        if connection is not None:
            await self._release(connection)
        self._state = SessionState.IDLE

    async def _drop_voice(self) -> None:
        """Stop the track in flight and release voice, keeping the queue."""
        self._finish_current()
        self._sink = None
        connection, self._connection = self._connection, None
        self._state = SessionState.IDLE
        if connection is not None:
            await self._release(connection)

    async def _release(self, connection: VoiceConnection) -> None:
        try:
            await connection.destroy()
        except Exception as e:
            logger.warning(LogTemplates.VOICE_DESTROY_ERROR, self._guild_id, e)

    # === Advancement (caller holds the lock) ===

    async def _advance(self) -> None:
        """Start the next queued item; a no-op that reports idle on an empty queue.

        If an item fails because voice is gone, it goes back to the head of the
        queue and the connection is dropped so the next play rejoins.
        """
        self._state = SessionState.ADVANCING
        while self._queue:
            item = self._queue.popleft()
            if self._start(item):
                return
            if not self._voice_alive():
                self._queue.appendleft(item)
                logger.warning(LogTemplates.VOICE_LOST, self._guild_id, len(self._queue))
                await self._drop_voice()
                return

        self._state = SessionState.IDLE
        logger.info(LogTemplates.SESSION_QUEUE_EMPTY, self._guild_id)

    def _voice_alive(self) -> bool:
        return self._connection is not None and self._connection.is_connected()

    def _start(self, item: QueueItem) -> bool:
        sink = self._sink
        if sink is None:
            return False

        self._sequence += 1
        sequence = self._sequence
        logger.info(LogTemplates.SESSION_LOADING, item.title, self._guild_id)

        try:
            handle = self._pipeline.start(
                item.reference, partial(self._on_pipeline_error, sequence)
            )
        except PipelineError as e:
            logger.error(LogTemplates.SESSION_TRACK_FAILED, item.title, self._guild_id, e)
            return False

        try:
            sink.play(handle.stdout, partial(self._on_sink_event, sequence))
        except SinkError as e:
            handle.close()
            logger.error(LogTemplates.SINK_PLAY_FAILED, item.title, self._guild_id, e)
            return False

        self._in_flight = _InFlight(sequence=sequence, item=item, handle=handle)
        self._state = SessionState.PLAYING
        logger.info(LogTemplates.SESSION_NOW_PLAYING, item.title, self._guild_id, sequence)
        return True

    def _finish_current(self) -> None:
        current, self._in_flight = self._in_flight, None
        if self._sink is not None and self._sink.is_playing():
            # The IDLE this produces carries a superseded sequence and is dropped
            self._sink.stop()
        if current is not None:
            current.handle.close()

    # === Message passing ===

    def _ensure_consumer(self) -> None:
        if self._consumer is not None and not self._consumer.done():
            return

        self._loop = asyncio.get_running_loop()
        self._inbox = asyncio.Queue()
        self._consumer = self._loop.create_task(
            self._consume(), name=f"playback-session-{self._guild_id}"
        )

    def _post(self, message: SessionMessage) -> None:
        """Thread-safe hand-off into the session inbox."""
        loop, inbox = self._loop, self._inbox
        if loop is None or inbox is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(inbox.put_nowait, message)

    def _on_sink_event(self, sequence: int, event: SinkEvent) -> None:
        self._post(SessionMessage(sequence=sequence, kind=event.kind, error=event.error))

    def _on_pipeline_error(self, sequence: int, error: PipelineError) -> None:
        self._post(
            SessionMessage(
                sequence=sequence, kind=SinkEventKind.ERROR, error=error, source="pipeline"
            )
        )

    async def _consume(self) -> None:
        inbox = self._inbox
        assert inbox is not None

        while True:
            message = await inbox.get()
            try:
                await self._handle(message)
            except Exception:
                logger.exception(
                    LogTemplates.SESSION_EVENT_HANDLER_ERROR, message.kind.value, self._guild_id
                )
            finally:
                inbox.task_done()

    async def _handle(self, message: SessionMessage) -> None:
        async with self._lock:
            current = self._in_flight
            if current is None or current.sequence != message.sequence:
                logger.debug(
                    LogTemplates.SESSION_STALE_EVENT,
                    message.kind.value,
                    message.sequence,
                    self._guild_id,
                )
                return

            if message.kind is SinkEventKind.STARTED:
                logger.info(LogTemplates.SINK_STARTED, self._guild_id)
                return

            if message.kind is SinkEventKind.ERROR:
                error = message.error
                if message.source == "sink" and not isinstance(error, SinkError):
                    error = SinkError(str(error), original=error)
                logger.error(
                    LogTemplates.SESSION_TRACK_FAILED, current.item.title, self._guild_id, error
                )

            self._finish_current()
            await self._advance()

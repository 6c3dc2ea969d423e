"""
Tests for PlaybackSession

Covers the per-guild playback state machine:
- FIFO ordering and queue positions
- Skip and natural advancement through the session inbox
- Pipeline and sink failures (logged, queue advances)
- Stale sink events from superseded tracks
- Voice connect timeouts and partial-session cleanup
- Disconnect as a full reset, including resolutions that straddle it
"""

import asyncio
import logging

import pytest

from conftest import FakeConnection
from discord_stream_bot.domain.music.value_objects import SessionState, SinkEvent
from discord_stream_bot.domain.shared.exceptions import (
    NoResultsError,
    PipelineError,
    SinkError,
    VoiceConnectError,
)

# =============================================================================
# Enqueue and Ordering
# =============================================================================


class TestPlayOrdering:
    """Tests for queueing and starting tracks."""

    @pytest.mark.asyncio
    async def test_first_play_starts_immediately(self, session, voice_channel, pipeline, transport):
        """The first track goes straight to the pipeline and the sink."""
        result = await session.play(voice_channel, "a")

        assert result.started is True
        assert result.position == 1
        assert result.queue_length == 0
        assert pipeline.references == ["ref-a"]
        assert transport.joins == [voice_channel]
        assert session.state is SessionState.PLAYING
        assert session.current.title == "Video a"

    @pytest.mark.asyncio
    async def test_queued_positions_count_current_track(self, session, voice_channel):
        """Tracks queued behind a playing one report positions 2, 3, ..."""
        first = await session.play(voice_channel, "a")
        second = await session.play(voice_channel, "b")
        third = await session.play(voice_channel, "c")

        assert [first.queue_length, second.queue_length, third.queue_length] == [0, 1, 2]
        assert second.started is False
        assert second.position == 2
        assert third.position == 3
        assert session.queue_length == 2
        assert session.get_queue_length() == 2

    @pytest.mark.asyncio
    async def test_joins_voice_only_once(self, session, voice_channel, transport):
        """An established session is reused for later plays."""
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")

        assert len(transport.joins) == 1
        assert transport.connections[0].subscribed == [transport.sink]

    @pytest.mark.asyncio
    async def test_natural_finish_advances_in_order(
        self, session, voice_channel, pipeline, transport, settle
    ):
        """Tracks play in the order they were requested."""
        for q in ("a", "b", "c"):
            await session.play(voice_channel, q)

        transport.sink.finish()
        await settle(session)
        assert session.current.reference == "ref-b"

        transport.sink.finish()
        await settle(session)
        assert session.current.reference == "ref-c"

        assert pipeline.references == ["ref-a", "ref-b", "ref-c"]
        assert pipeline.handles[0].closed
        assert pipeline.handles[1].closed

    @pytest.mark.asyncio
    async def test_queue_runs_dry_stays_connected(
        self, session, voice_channel, transport, settle, caplog
    ):
        """After the last track the session idles but keeps its voice connection."""
        caplog.set_level(logging.INFO)
        await session.play(voice_channel, "a")

        transport.sink.finish()
        await settle(session)

        assert session.state is SessionState.IDLE
        assert session.current is None
        assert session.is_connected is True
        assert transport.connections[0].destroy_calls == 0
        assert "staying connected" in caplog.text

    @pytest.mark.asyncio
    async def test_play_after_idle_reuses_connection(
        self, session, voice_channel, transport, settle
    ):
        """A play on an idle, connected session starts without rejoining."""
        await session.play(voice_channel, "a")
        transport.sink.finish()
        await settle(session)

        result = await session.play(voice_channel, "b")

        assert result.started is True
        assert len(transport.joins) == 1


# =============================================================================
# Resolution Failures
# =============================================================================


class TestResolutionFailures:
    """Tests for errors raised before anything is queued."""

    @pytest.mark.asyncio
    async def test_resolution_error_leaves_queue_untouched(
        self, session, voice_channel, resolver, transport
    ):
        """A failed resolution neither joins voice nor changes the queue."""
        resolver.errors["nothing"] = NoResultsError("nothing", "No results found")

        with pytest.raises(NoResultsError):
            await session.play(voice_channel, "nothing")

        assert transport.joins == []
        assert session.queue_length == 0
        assert session.state is SessionState.IDLE

    @pytest.mark.asyncio
    async def test_resolution_error_while_playing(self, session, voice_channel, resolver):
        """The current track and the waiting queue survive a failed request."""
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")
        resolver.errors["bad"] = NoResultsError("bad")

        with pytest.raises(NoResultsError):
            await session.play(voice_channel, "bad")

        assert session.current.reference == "ref-a"
        assert session.queue_length == 1

    @pytest.mark.asyncio
    async def test_resolution_discarded_after_disconnect(
        self, session, voice_channel, resolver, transport, pipeline
    ):
        """A resolution that completes after a disconnect is dropped, not queued."""
        resolver.gate = asyncio.Event()
        task = asyncio.create_task(session.play(voice_channel, "late"))
        await asyncio.sleep(0)

        await session.disconnect()
        resolver.gate.set()
        result = await task

        assert result.discarded is True
        assert result.started is False
        assert result.title == "Video late"
        assert transport.joins == []
        assert pipeline.references == []
        assert session.queue_length == 0


# =============================================================================
# Skip
# =============================================================================


class TestSkip:
    """Tests for skipping the in-flight track."""

    @pytest.mark.asyncio
    async def test_skip_with_nothing_playing(self, session):
        """Skip on an idle session reports nothing to skip."""
        assert await session.skip() is False

    @pytest.mark.asyncio
    async def test_skip_advances_to_next(
        self, session, voice_channel, transport, pipeline, settle
    ):
        """Skip stops the sink and the resulting idle event starts the next track."""
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")

        assert await session.skip() is True
        await settle(session)

        assert transport.sink.stop_calls >= 1
        assert pipeline.handles[0].closed
        assert session.current.reference == "ref-b"
        assert session.queue_length == 0
        assert session.state is SessionState.PLAYING

    @pytest.mark.asyncio
    async def test_skip_last_track_goes_idle(self, session, voice_channel, settle):
        """Skipping the only track leaves the session idle."""
        await session.play(voice_channel, "a")

        assert await session.skip() is True
        await settle(session)

        assert session.current is None
        assert session.state is SessionState.IDLE

    @pytest.mark.asyncio
    async def test_skip_after_track_ended_reports_nothing(
        self, session, voice_channel, transport, settle
    ):
        """A track that ran out before its idle event was handled cannot be skipped."""
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")

        transport.sink.finish()

        assert await session.skip() is False
        assert transport.sink.stop_calls == 0

        await settle(session)
        assert session.current.reference == "ref-b"


# =============================================================================
# Background Failures
# =============================================================================


class TestBackgroundFailures:
    """Tests for pipeline and sink errors that are logged rather than raised."""

    @pytest.mark.asyncio
    async def test_pipeline_error_advances_queue(
        self, session, voice_channel, pipeline, settle, caplog
    ):
        """A failed fetch/transcode is logged and the next track starts."""
        caplog.set_level(logging.INFO)
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")

        handle = pipeline.handles[0]
        handle.on_error(PipelineError("ffmpeg", "exited with code 1", returncode=1))
        await settle(session)

        assert handle.closed
        assert session.current.reference == "ref-b"
        assert "Track 'Video a' failed" in caplog.text
        assert "ffmpeg: exited with code 1" in caplog.text

    @pytest.mark.asyncio
    async def test_spawn_failure_skips_to_next(
        self, session, voice_channel, pipeline, settle, caplog
    ):
        """An item whose pipeline cannot start is dropped in favour of the next."""
        caplog.set_level(logging.INFO)
        pipeline.fail_on.add("ref-b")
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")
        await session.play(voice_channel, "c")

        assert await session.skip() is True
        await settle(session)

        assert session.current.reference == "ref-c"
        assert pipeline.references == ["ref-a", "ref-c"]
        assert "Track 'Video b' failed" in caplog.text

    @pytest.mark.asyncio
    async def test_sink_refusal_closes_pipeline(
        self, session, voice_channel, pipeline, transport, settle, caplog
    ):
        """A sink that refuses the stream on a live connection drops that track."""
        caplog.set_level(logging.INFO)
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")

        transport.sink.refuse = SinkError("Already playing audio.")
        transport.sink.finish()
        await settle(session)

        assert pipeline.handles[-1].reference == "ref-b"
        assert pipeline.handles[-1].closed
        assert "Sink refused stream for 'Video b'" in caplog.text
        assert session.current is None
        assert session.state is SessionState.IDLE
        assert session.is_connected is True

    @pytest.mark.asyncio
    async def test_sink_error_event_advances(
        self, session, voice_channel, transport, settle, caplog
    ):
        """A sink that finishes with an error is logged and the queue advances."""
        caplog.set_level(logging.INFO)
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")

        transport.sink.finish(RuntimeError("opus encoder died"))
        await settle(session)

        assert session.current.reference == "ref-b"
        assert "Track 'Video a' failed" in caplog.text
        assert "opus encoder died" in caplog.text

    @pytest.mark.asyncio
    async def test_started_event_is_logged(self, session, voice_channel, transport, settle, caplog):
        """The first audio frame is reported without changing state."""
        caplog.set_level(logging.INFO)
        await session.play(voice_channel, "a")

        transport.sink.emit_started()
        await settle(session)

        assert "Audio started playing in guild 111" in caplog.text
        assert session.current.reference == "ref-a"
        assert session.state is SessionState.PLAYING


# =============================================================================
# Stale Events
# =============================================================================


class TestStaleEvents:
    """Tests for messages tagged with a superseded sequence number."""

    @pytest.mark.asyncio
    async def test_late_idle_from_previous_track_is_ignored(
        self, session, voice_channel, transport, settle
    ):
        """An idle event from track A arriving while B plays does not skip B."""
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")
        await session.play(voice_channel, "c")
        listener_a = transport.sink.listener

        await session.skip()
        await settle(session)
        assert session.current.reference == "ref-b"

        listener_a(SinkEvent.finished())
        await settle(session)

        assert session.current.reference == "ref-b"
        assert session.queue_length == 1

    @pytest.mark.asyncio
    async def test_late_pipeline_error_is_ignored(self, session, voice_channel, pipeline, settle):
        """A pipeline failure reported after its track was replaced is dropped."""
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")
        await session.skip()
        await settle(session)

        pipeline.handles[0].on_error(PipelineError("yt-dlp", "exited with code 1"))
        await settle(session)

        assert session.current.reference == "ref-b"
        assert not pipeline.handles[1].closed


# =============================================================================
# Voice Connect
# =============================================================================


class TestVoiceConnect:
    """Tests for bounded voice connects."""

    @pytest.mark.asyncio
    async def test_connect_timeout_raises_and_cleans_up(
        self, session, voice_channel, transport, pipeline
    ):
        """A connection that never becomes ready is destroyed and nothing is queued."""
        connection = FakeConnection()
        connection.hang = asyncio.Event()
        transport.next_connection = connection

        with pytest.raises(VoiceConnectError) as exc_info:
            await session.play(voice_channel, "a")

        assert "within 0.05s" in exc_info.value.message
        assert exc_info.value.channel_id == 222
        assert connection.destroy_calls == 1
        assert session.is_connected is False
        assert session.queue_length == 0
        assert session.state is SessionState.IDLE
        assert pipeline.references == []

    @pytest.mark.asyncio
    async def test_connect_failure_is_wrapped(self, session, voice_channel, transport):
        """Unexpected connect errors surface as VoiceConnectError."""
        connection = FakeConnection()
        connection.ready_error = RuntimeError("gateway closed")
        transport.next_connection = connection

        with pytest.raises(VoiceConnectError) as exc_info:
            await session.play(voice_channel, "a")

        assert "gateway closed" in exc_info.value.message
        assert connection.destroy_calls == 1

    @pytest.mark.asyncio
    async def test_retry_after_failed_connect(self, session, voice_channel, transport):
        """A later play joins again from scratch."""
        connection = FakeConnection()
        connection.hang = asyncio.Event()
        transport.next_connection = connection

        with pytest.raises(VoiceConnectError):
            await session.play(voice_channel, "a")

        result = await session.play(voice_channel, "b")

        assert result.started is True
        assert len(transport.joins) == 2
        assert session.is_connected is True


# =============================================================================
# Disconnect and Close
# =============================================================================


class TestDisconnect:
    """Tests for tearing a session down."""

    @pytest.mark.asyncio
    async def test_disconnect_when_idle(self, session):
        """Nothing to release on a fresh session."""
        assert await session.disconnect() is False

    @pytest.mark.asyncio
    async def test_disconnect_resets_everything(
        self, session, voice_channel, transport, pipeline, settle
    ):
        """Disconnect clears the queue, kills the pipeline and releases voice."""
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")

        assert await session.disconnect() is True
        await settle(session)

        assert pipeline.handles[0].closed
        assert transport.connections[0].destroy_calls == 1
        assert session.queue_length == 0
        assert session.current is None
        assert session.is_connected is False
        assert session.state is SessionState.IDLE
        # The idle event caused by stopping the sink must not start "b"
        assert pipeline.references == ["ref-a"]

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self, session, voice_channel):
        await session.play(voice_channel, "a")

        assert await session.disconnect() is True
        assert await session.disconnect() is False

    @pytest.mark.asyncio
    async def test_play_after_disconnect_rejoins(self, session, voice_channel, transport):
        """A session reused after disconnect behaves like a new one."""
        await session.play(voice_channel, "a")
        await session.disconnect()

        result = await session.play(voice_channel, "b")

        assert result.started is True
        assert len(transport.joins) == 2
        assert session.current.reference == "ref-b"

    @pytest.mark.asyncio
    async def test_destroy_error_is_logged(self, session, voice_channel, transport, caplog):
        """A failing voice teardown does not stop the reset."""
        await session.play(voice_channel, "a")
        transport.connections[0].destroy_error = RuntimeError("already gone")

        assert await session.disconnect() is True

        assert session.is_connected is False
        assert "Error destroying voice connection" in caplog.text

    @pytest.mark.asyncio
    async def test_close_stops_consumer(self, session, voice_channel):
        """Close disconnects and cancels the inbox consumer."""
        await session.play(voice_channel, "a")
        consumer = session._consumer

        await session.close()

        assert consumer.done()
        assert session._consumer is None
        assert session.is_connected is False


# =============================================================================
# Lost Voice
# =============================================================================


class TestVoiceLoss:
    """Tests for a voice connection that dies underneath the session."""

    @pytest.mark.asyncio
    async def test_dead_connection_is_replaced_on_next_play(
        self, session, voice_channel, transport, settle
    ):
        """After the bot is kicked, the next play rejoins instead of reusing the dead session."""
        await session.play(voice_channel, "a")
        transport.sink.finish()
        await settle(session)

        first = transport.connections[0]
        first.connected = False

        result = await session.play(voice_channel, "b")

        assert result.started is True
        assert first.destroy_calls == 1
        assert len(transport.joins) == 2
        assert session.current.reference == "ref-b"
        assert transport.connections[1].subscribed == [transport.sink]

    @pytest.mark.asyncio
    async def test_refusal_on_dead_voice_keeps_queue_for_rejoin(
        self, session, voice_channel, transport, pipeline, settle, caplog
    ):
        """Advancing onto a dead connection keeps the track queued and releases voice."""
        caplog.set_level(logging.INFO)
        await session.play(voice_channel, "a")
        await session.play(voice_channel, "b")

        first = transport.connections[0]
        first.connected = False
        transport.sink.refuse = SinkError("Not connected to voice.")
        transport.sink.finish()
        await settle(session)

        assert session.is_connected is False
        assert session.current is None
        assert session.queue_length == 1
        assert first.destroy_calls == 1
        assert pipeline.handles[-1].closed
        assert "Voice connection lost in guild 111" in caplog.text

        result = await session.play(voice_channel, "c")

        assert len(transport.joins) == 2
        assert session.current.reference == "ref-b"
        assert result.position == 2

    @pytest.mark.asyncio
    async def test_refusal_during_play_rejoins_once(self, session, voice_channel, transport, settle):
        """Voice that dies as the sink takes the stream is rejoined before play returns."""
        await session.play(voice_channel, "a")
        transport.sink.finish()
        await settle(session)

        first = transport.connections[0]

        def drop_voice(stream, listener):
            first.connected = False
            raise SinkError("Not connected to voice.")

        transport.sink.play = drop_voice

        result = await session.play(voice_channel, "b")

        assert result.started is True
        assert first.destroy_calls == 1
        assert len(transport.joins) == 2
        assert session.current.reference == "ref-b"
        assert session.is_connected is True

    @pytest.mark.asyncio
    async def test_failed_rejoin_raises_and_unqueues(self, session, voice_channel, transport, settle):
        """If the rejoin fails too, the caller sees the connect error and nothing stays queued."""
        await session.play(voice_channel, "a")
        transport.sink.finish()
        await settle(session)

        first = transport.connections[0]

        def drop_voice(stream, listener):
            first.connected = False
            raise SinkError("Not connected to voice.")

        transport.sink.play = drop_voice
        replacement = FakeConnection()
        replacement.ready_error = RuntimeError("gateway gone")
        transport.next_connection = replacement

        with pytest.raises(VoiceConnectError):
            await session.play(voice_channel, "b")

        assert session.queue_length == 0
        assert session.is_connected is False
        assert replacement.destroy_calls == 1

"""Port interfaces for Discord voice operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import IO, TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ...domain.music.value_objects import SinkEvent

SinkListener = Callable[["SinkEvent"], None]


class AudioSink(ABC):
    """Consumes a PCM byte stream and transmits it over a voice connection.

    Listeners are invoked from the sink's own playback thread.
    """

    @abstractmethod
    def play(self, stream: IO[bytes], listener: SinkListener) -> None:
        """Start consuming ``stream``; raises SinkError if the sink refuses it."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop consuming the current stream; the listener then receives IDLE."""
        ...

    @abstractmethod
    def is_playing(self) -> bool:
        ...


class VoiceConnection(ABC):
    """An established (or establishing) voice session in one channel."""

    @property
    @abstractmethod
    def guild_id(self) -> int:
        ...

    @abstractmethod
    async def wait_ready(self) -> None:
        """Block until the transport is ready to carry audio."""
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        """False once the underlying voice session has gone away (kicked, dropped)."""
        ...

    @abstractmethod
    def subscribe(self, sink: AudioSink) -> None:
        """Route the sink's audio over this connection."""
        ...

    @abstractmethod
    async def destroy(self) -> None:
        """Release the voice session. Safe to call on a partial connection."""
        ...


class VoiceTransport(ABC):
    """Interface for creating voice connections and sinks."""

    @abstractmethod
    def join(self, channel: Any) -> VoiceConnection:
        """Begin joining ``channel``; readiness is awaited separately."""
        ...

    @abstractmethod
    def create_sink(self) -> AudioSink:
        ...

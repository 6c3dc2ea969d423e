"""Immutable value objects for the playback context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionState(Enum):
    """Playback session lifecycle states."""

    IDLE = "idle"
    CONNECTING = "connecting"
    PLAYING = "playing"
    ADVANCING = "advancing"


class SinkEventKind(Enum):
    """Events emitted by an audio sink while it consumes a stream."""

    STARTED = "started"
    IDLE = "idle"
    ERROR = "error"


@dataclass(frozen=True)
class SinkEvent:
    """A single sink notification, optionally carrying the error that ended playback."""

    kind: SinkEventKind
    error: BaseException | None = None

    @classmethod
    def started(cls) -> SinkEvent:
        return cls(SinkEventKind.STARTED)

    @classmethod
    def finished(cls, error: BaseException | None = None) -> SinkEvent:
        """Idle on clean completion, error otherwise."""
        if error is not None:
            return cls(SinkEventKind.ERROR, error)
        return cls(SinkEventKind.IDLE)


@dataclass(frozen=True)
class SessionMessage:
    """Message posted to a session's inbox, tagged with the pipeline sequence number."""

    sequence: int
    kind: SinkEventKind
    error: BaseException | None = None
    source: str = "sink"

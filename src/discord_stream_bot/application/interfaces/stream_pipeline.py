"""Port interface for the fetch → transcode audio pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.shared.exceptions import PipelineError

PipelineErrorCallback = Callable[["PipelineError"], None]


class PipelineHandle(ABC):
    """A live pipeline for one in-flight track."""

    @property
    @abstractmethod
    def stdout(self) -> IO[bytes]:
        """Raw PCM output (s16le) ready for the audio sink."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...

    @abstractmethod
    def close(self) -> None:
        """Tear down both processes. Safe to call more than once."""
        ...


class StreamPipeline(ABC):
    """Interface for starting a pipeline from a playable reference."""

    @abstractmethod
    def start(self, reference: str, on_error: PipelineErrorCallback) -> PipelineHandle:
        """Spawn the pipeline and return as soon as both stages are running.

        ``on_error`` may be called from a worker thread, at most once per handle.

        Raises:
            PipelineError: if either stage cannot be spawned.
        """
        ...

"""
Fetch/Transcode Stream Pipeline

Runs yt-dlp and ffmpeg as two child processes and copies bytes between them:

    yt-dlp stdout  ->  copy loop  ->  ffmpeg stdin
    ffmpeg stdout  ->  audio sink (s16le, 48 kHz, stereo PCM)

Worker threads own the copy loop, the stderr watchers, and the exit watchers.
A non-zero exit is reported once through the ``on_error`` callback unless the
handle was closed first.
"""

from __future__ import annotations

import contextlib
import itertools
import logging
import subprocess
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import IO, TYPE_CHECKING, Any

from discord_stream_bot.application.interfaces.stream_pipeline import (
    PipelineErrorCallback,
    PipelineHandle,
    StreamPipeline,
)
from discord_stream_bot.domain.shared.exceptions import PipelineError
from discord_stream_bot.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from discord_stream_bot.config.settings import AudioSettings

logger = logging.getLogger(__name__)

FETCHER = "yt-dlp"
TRANSCODER = "ffmpeg"

# ffmpeg prints these when its output is torn down mid-stream; playback is unaffected
BENIGN_TRANSCODER_ERRORS: tuple[str, ...] = (
    "Error writing trailer",
    "Error closing file",
    "Error muxing a packet",
    "Error submitting a packet",
)


def is_fetcher_error(line: str) -> bool:
    """yt-dlp prefixes real failures with ``ERROR:``; warnings and progress are noise."""
    return "ERROR" in line


def is_transcoder_error(line: str) -> bool:
    if any(benign in line for benign in BENIGN_TRANSCODER_ERRORS):
        return False
    return "error" in line.lower()


@dataclass
class PipelineConfig:
    """Command lines and buffer sizes for the fetch/transcode processes."""

    ytdlp_path: str = FETCHER
    ffmpeg_path: str = TRANSCODER
    ytdlp_format: str = "bestaudio/best"
    player_client: str = "android"

    sample_rate: int = 48000
    channels: int = 2

    read_chunk_size: int = 64 * 1024
    kill_timeout: float = 2.0

    @classmethod
    def from_settings(cls, settings: AudioSettings) -> PipelineConfig:
        return cls(
            ytdlp_path=settings.ytdlp_path,
            ffmpeg_path=settings.ffmpeg_path,
            ytdlp_format=settings.ytdlp_format,
            player_client=settings.player_client,
            sample_rate=settings.sample_rate,
            channels=settings.channels,
            read_chunk_size=settings.read_chunk_size,
        )

    def fetch_args(self, reference: str) -> list[str]:
        """yt-dlp: best audio of a single video, written to stdout."""
        return [
            self.ytdlp_path,
            "-f",
            self.ytdlp_format,
            "-o",
            "-",
            "--no-playlist",
            "--quiet",
            "--no-warnings",
            "--extractor-args",
            f"youtube:player_client={self.player_client}",
            "--",
            reference,
        ]

    def transcode_args(self) -> list[str]:
        """ffmpeg: any container on stdin to raw signed 16-bit PCM on stdout."""
        return [
            self.ffmpeg_path,
            "-i",
            "pipe:0",
            "-fflags",
            "+nobuffer",
            "-flags",
            "low_delay",
            "-f",
            "s16le",
            "-ar",
            str(self.sample_rate),
            "-ac",
            str(self.channels),
            "-loglevel",
            "error",
            "pipe:1",
        ]


def _kill(process: subprocess.Popen[bytes], name: str) -> None:
    try:
        if process.poll() is None:
            process.kill()
    except OSError as e:
        logger.debug(LogTemplates.PROCESS_CLEANUP_ERROR, name, e)


def _reap(process: subprocess.Popen[bytes], name: str, timeout: float) -> None:
    """Wait for a killed child, then close its pipes. Blocks; keep off the event loop."""
    try:
        process.wait(timeout=timeout)
    except subprocess.TimeoutExpired as e:
        logger.debug(LogTemplates.PROCESS_CLEANUP_ERROR, name, e)

    for stream in (process.stdin, process.stdout, process.stderr):
        if stream is not None:
            with contextlib.suppress(OSError, ValueError):
                stream.close()


def _terminate(process: subprocess.Popen[bytes], name: str, timeout: float) -> None:
    _kill(process, name)
    _reap(process, name, timeout)


class SubprocessPipelineHandle(PipelineHandle):
    """A running yt-dlp/ffmpeg pair and the threads that service it."""

    def __init__(
        self,
        sequence: int,
        reference: str,
        fetcher: subprocess.Popen[bytes],
        transcoder: subprocess.Popen[bytes],
        on_error: PipelineErrorCallback,
        config: PipelineConfig,
    ) -> None:
        self._sequence = sequence
        self._reference = reference
        self._fetcher = fetcher
        self._transcoder = transcoder
        self._on_error = on_error
        self._config = config

        self._lock = threading.Lock()
        self._closed = False
        self._error_reported = False
        self._threads: list[threading.Thread] = []

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def stdout(self) -> IO[bytes]:
        stream = self._transcoder.stdout
        assert stream is not None
        return stream

    @property
    def closed(self) -> bool:
        return self._closed

    def start_workers(self) -> None:
        workers: list[tuple[str, Callable[..., None], Sequence[Any]]] = [
            ("copy", self._pump, ()),
            ("fetcher-stderr", self._watch_stderr, (self._fetcher, FETCHER)),
            ("transcoder-stderr", self._watch_stderr, (self._transcoder, TRANSCODER)),
            ("fetcher-exit", self._watch_exit, (self._fetcher, FETCHER)),
            ("transcoder-exit", self._watch_exit, (self._transcoder, TRANSCODER)),
        ]
        for suffix, target, args in workers:
            thread = threading.Thread(
                target=target,
                args=tuple(args),
                name=f"pipeline-{self._sequence}-{suffix}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

    def close(self) -> None:
        """Kill both processes and release their pipes. Safe to call repeatedly.

        Called on the event loop, so only the kill happens here; reaping and
        closing the pipes run on a worker thread.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True

        _kill(self._fetcher, FETCHER)
        _kill(self._transcoder, TRANSCODER)

        reaper = threading.Thread(
            target=self._reap_all, name=f"pipeline-{self._sequence}-reaper", daemon=True
        )
        self._threads.append(reaper)
        reaper.start()

    def _reap_all(self) -> None:
        _reap(self._fetcher, FETCHER, self._config.kill_timeout)
        _reap(self._transcoder, TRANSCODER, self._config.kill_timeout)
        logger.debug(LogTemplates.PIPELINE_CLOSED, self._sequence)

    # === Workers ===

    def _pump(self) -> None:
        """Copy fetcher stdout into transcoder stdin until EOF or a broken pipe."""
        source = self._fetcher.stdout
        dest = self._transcoder.stdin
        assert source is not None and dest is not None

        try:
            while True:
                chunk = source.read(self._config.read_chunk_size)
                if not chunk:
                    break
                dest.write(chunk)
                dest.flush()
        except BrokenPipeError:
            logger.debug(LogTemplates.PIPELINE_BROKEN_PIPE, self._sequence)
        except (OSError, ValueError) as e:
            # Pipes closed underneath us by close() are expected
            if not self._closed:
                logger.warning(LogTemplates.PIPELINE_COPY_ERROR, self._sequence, e)
        finally:
            # EOF on stdin lets ffmpeg flush and exit cleanly
            with contextlib.suppress(OSError, ValueError):
                dest.close()

    def _watch_stderr(self, process: subprocess.Popen[bytes], name: str) -> None:
        stream = process.stderr
        if stream is None:
            return

        if name == FETCHER:
            is_error, template = is_fetcher_error, LogTemplates.FETCHER_STDERR
        else:
            is_error, template = is_transcoder_error, LogTemplates.TRANSCODER_STDERR

        try:
            for raw in iter(stream.readline, b""):
                line = raw.decode("utf-8", errors="replace").strip()
                if line and is_error(line):
                    logger.error(template, line)
        except (OSError, ValueError) as e:
            if not self._closed:
                logger.debug(LogTemplates.PROCESS_CLEANUP_ERROR, name, e)

    def _watch_exit(self, process: subprocess.Popen[bytes], name: str) -> None:
        returncode = process.wait()
        if returncode != 0:
            self._report(
                PipelineError(
                    name,
                    ErrorMessages.PROCESS_EXITED.format(returncode=returncode),
                    returncode=returncode,
                )
            )

    def _report(self, error: PipelineError) -> None:
        with self._lock:
            if self._closed or self._error_reported:
                return
            self._error_reported = True

        logger.error(LogTemplates.PIPELINE_PROCESS_FAILED, self._sequence, error)
        self._on_error(error)


class SubprocessStreamPipeline(StreamPipeline):
    """Starts a yt-dlp to ffmpeg process pair per track."""

    def __init__(
        self,
        config: PipelineConfig | None = None,
        popen: Callable[..., subprocess.Popen[bytes]] = subprocess.Popen,
    ) -> None:
        self._config = config or PipelineConfig()
        self._popen = popen
        self._counter = itertools.count(1)

    @property
    def config(self) -> PipelineConfig:
        return self._config

    def start(self, reference: str, on_error: PipelineErrorCallback) -> SubprocessPipelineHandle:
        sequence = next(self._counter)

        # Unbuffered so the copy loop forwards whatever yt-dlp has produced
        fetcher = self._spawn(
            FETCHER, self._config.fetch_args(reference), stdin=subprocess.DEVNULL, bufsize=0
        )
        try:
            # Buffered stdout: the sink reads whole PCM frames
            transcoder = self._spawn(
                TRANSCODER, self._config.transcode_args(), stdin=subprocess.PIPE
            )
        except PipelineError:
            _terminate(fetcher, FETCHER, self._config.kill_timeout)
            raise

        handle = SubprocessPipelineHandle(
            sequence=sequence,
            reference=reference,
            fetcher=fetcher,
            transcoder=transcoder,
            on_error=on_error,
            config=self._config,
        )
        handle.start_workers()

        logger.info(
            LogTemplates.PIPELINE_STARTED, sequence, reference, fetcher.pid, transcoder.pid
        )
        return handle

    def _spawn(self, name: str, args: list[str], **kwargs: Any) -> subprocess.Popen[bytes]:
        try:
            return self._popen(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE, **kwargs)
        except OSError as e:
            error = PipelineError(
                name, ErrorMessages.PROCESS_SPAWN_FAILED.format(executable=args[0], error=e)
            )
            logger.error(LogTemplates.PIPELINE_SPAWN_FAILED, error)
            raise error from e

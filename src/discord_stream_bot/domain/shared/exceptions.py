"""Base exception classes for domain-level errors.

The taxonomy mirrors where an error surfaces:

- ``ResolutionError`` and ``VoiceConnectError`` happen before the caller is
  acknowledged and are raised to the caller.
- ``PipelineError`` and ``SinkError`` happen while audio streams in the
  background; they are logged and the queue advances.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ResolutionError(DomainError):
    """Raised when a query or link cannot be turned into a playable track."""

    def __init__(self, query: str, message: str | None = None, code: str | None = None) -> None:
        msg = message or f"Could not resolve '{query}'"
        super().__init__(msg, code=code or "RESOLUTION_ERROR")
        self.query = query


class NoResultsError(ResolutionError):
    """Raised when a search returns zero results."""

    def __init__(self, query: str, message: str | None = None) -> None:
        super().__init__(query, message or "No results found", code="NO_RESULTS")


class InvalidResultError(ResolutionError):
    """Raised when the top search result has no usable reference."""

    def __init__(self, query: str, message: str | None = None) -> None:
        super().__init__(query, message or "Invalid video result", code="INVALID_RESULT")


class VoiceConnectError(DomainError):
    """Raised when the voice session does not become ready in time."""

    def __init__(self, channel_id: int | None, message: str | None = None) -> None:
        msg = message or "Failed to establish voice connection"
        super().__init__(msg, code="VOICE_CONNECT_ERROR")
        self.channel_id = channel_id


class PipelineError(DomainError):
    """Raised or reported when the fetch/transcode processes fail."""

    def __init__(self, stage: str, message: str, returncode: int | None = None) -> None:
        super().__init__(f"{stage}: {message}", code="PIPELINE_ERROR")
        self.stage = stage
        self.returncode = returncode


class SinkError(DomainError):
    """Reported when the audio sink fails while consuming a stream."""

    def __init__(self, message: str, original: BaseException | None = None) -> None:
        super().__init__(message, code="SINK_ERROR")
        self.original = original

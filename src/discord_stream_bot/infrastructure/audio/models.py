"""Pydantic models for yt-dlp data and configuration.

These are infrastructure-specific models for parsing the loosely typed dicts
yt-dlp returns and for building the options passed to ``YoutubeDL``.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_stream_bot.domain.shared.types import NonEmptyStr, PositiveInt

DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10
WATCH_URL_TEMPLATE: Final[str] = "https://www.youtube.com/watch?v={video_id}"


# ── Pydantic models for yt-dlp data ────────────────────────────────────


class YtDlpEntry(BaseModel):
    """One result from a yt-dlp search or extraction.

    Extra fields from yt-dlp are silently ignored. Empty or non-string values
    become None so callers can apply their own fallbacks.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr | None = None
    url: NonEmptyStr | None = None
    webpage_url: NonEmptyStr | None = None
    title: NonEmptyStr | None = None

    @field_validator("id", "url", "webpage_url", "title", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()

    @property
    def reference(self) -> str | None:
        """Something the fetch process can open: a watch URL, or one built from the id."""
        for candidate in (self.webpage_url, self.url):
            if candidate and candidate.startswith(("http://", "https://")):
                return candidate

        # Flat extraction sometimes reports the bare video id as ``url``
        video_id = self.id or self.url
        if video_id:
            return WATCH_URL_TEMPLATE.format(video_id=video_id)
        return None


class YtDlpSearchResult(BaseModel):
    """Playlist-shaped result of a ``ytsearchN:`` query."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    entries: list[YtDlpEntry] = Field(default_factory=list)

    @field_validator("entries", mode="before")
    @classmethod
    def _drop_garbage_entries(cls, v: Any) -> list[Any]:
        if v is None or isinstance(v, (str, bytes)) or not isinstance(v, Iterable):
            return []
        return [e for e in v if isinstance(e, dict)]


# ── yt-dlp option models ───────────────────────────────────────────────


class YouTubeExtractorConfig(BaseModel):
    """YouTube-specific yt-dlp extractor arguments."""

    model_config = ConfigDict(frozen=True)

    player_client: list[NonEmptyStr] = Field(default_factory=lambda: ["android"], min_length=1)


class ExtractorArgs(BaseModel):
    """Container for yt-dlp extractor arguments."""

    model_config = ConfigDict(frozen=True)

    youtube: YouTubeExtractorConfig = Field(default_factory=YouTubeExtractorConfig)


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    no_warnings: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    skip_download: bool = True
    extract_flat: NonEmptyStr | bool = False
    format: NonEmptyStr | None = None
    extractor_args: ExtractorArgs | None = None

"""TrackResolver implementation using yt-dlp for link titles and search."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Final, cast

from yt_dlp import YoutubeDL

from discord_stream_bot.application.interfaces.track_resolver import TrackResolver
from discord_stream_bot.config.settings import AudioSettings
from discord_stream_bot.domain.music.entities import QueueItem
from discord_stream_bot.domain.shared.exceptions import (
    InvalidResultError,
    NoResultsError,
    ResolutionError,
)
from discord_stream_bot.domain.shared.messages import ErrorMessages, LogTemplates
from discord_stream_bot.infrastructure.audio.models import (
    ExtractorArgs,
    YouTubeExtractorConfig,
    YtDlpEntry,
    YtDlpOpts,
    YtDlpSearchResult,
)

logger = logging.getLogger(__name__)

LINK_PLACEHOLDER_TITLE: Final[str] = "YouTube Video"
UNTITLED_RESULT_TITLE: Final[str] = "Unknown"
SEARCH_PREFIX: Final[str] = "ytsearch1:"

YOUTUBE_LINK_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:https?://)?(?:[a-z0-9-]+\.)*(?:youtube\.com|youtu\.be)(?:/|$)",
    re.IGNORECASE,
)


class YtDlpTrackResolver(TrackResolver):
    """Turns a YouTube link or free-text query into a QueueItem.

    Links are used verbatim as the reference; their title is looked up on a
    best-effort basis. Free text is searched and the top hit is taken.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(
            extractor_args=ExtractorArgs(
                youtube=YouTubeExtractorConfig(player_client=[self._settings.player_client])
            ),
        )

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def is_direct_link(self, query: str) -> bool:
        return bool(YOUTUBE_LINK_PATTERN.match(query.strip()))

    async def resolve(self, query: str) -> QueueItem:
        query = query.strip()
        if not query:
            raise ResolutionError(query, ErrorMessages.EMPTY_QUERY)

        if self.is_direct_link(query):
            logger.info(LogTemplates.RESOLVE_URL_DETECTED, query)
            title = await self._lookup_title(query)
            return QueueItem(reference=query, title=title)

        return await self._search(query)

    # === Links ===

    async def _lookup_title(self, url: str) -> str:
        """Title for a direct link, or the placeholder when it cannot be read."""
        if not self._settings.lookup_link_titles:
            logger.warning(LogTemplates.TITLE_LOOKUP_DISABLED, LINK_PLACEHOLDER_TITLE, url)
            return LINK_PLACEHOLDER_TITLE

        try:
            entry = await asyncio.to_thread(self._extract_info_sync, url)
        except Exception as e:
            logger.warning(LogTemplates.TITLE_LOOKUP_FAILED, url, LINK_PLACEHOLDER_TITLE, e)
            return LINK_PLACEHOLDER_TITLE

        if entry is None or not entry.title:
            logger.warning(LogTemplates.TITLE_LOOKUP_EMPTY, url, LINK_PLACEHOLDER_TITLE)
            return LINK_PLACEHOLDER_TITLE
        return entry.title

    def _extract_info_sync(self, url: str) -> YtDlpEntry | None:
        opts = self._get_opts(extract_flat=True)
        with YoutubeDL(params=cast(Any, opts.model_dump(exclude_none=True))) as ydl:
            data = ydl.extract_info(url, download=False, process=False)
            if not isinstance(data, dict):
                return None
            return YtDlpEntry.model_validate(data)

    # === Search ===

    async def _search(self, query: str) -> QueueItem:
        logger.info(LogTemplates.RESOLVE_SEARCHING, query)

        try:
            result = await asyncio.to_thread(self._search_sync, query)
        except Exception as e:
            logger.exception(LogTemplates.RESOLVE_SEARCH_FAILED, query)
            raise ResolutionError(query, ErrorMessages.SEARCH_FAILED.format(query=query)) from e

        if not result.entries:
            logger.info(LogTemplates.RESOLVE_NO_RESULTS, query)
            raise NoResultsError(query, ErrorMessages.NO_RESULTS)

        top = result.entries[0]
        reference = top.reference
        if not reference:
            logger.warning(LogTemplates.RESOLVE_INVALID_RESULT, query)
            raise InvalidResultError(query, ErrorMessages.INVALID_RESULT)

        title = top.title
        if not title:
            logger.warning(LogTemplates.RESOLVE_UNTITLED_RESULT, query, UNTITLED_RESULT_TITLE)
            title = UNTITLED_RESULT_TITLE

        logger.info(LogTemplates.RESOLVE_FOUND, title, reference)
        return QueueItem(reference=reference, title=title)

    def _search_sync(self, query: str) -> YtDlpSearchResult:
        opts = self._get_opts(extract_flat="in_playlist")
        with YoutubeDL(params=cast(Any, opts.model_dump(exclude_none=True))) as ydl:
            data = ydl.extract_info(f"{SEARCH_PREFIX}{query}", download=False)
            if not isinstance(data, dict):
                return YtDlpSearchResult()
            return YtDlpSearchResult.model_validate(data)

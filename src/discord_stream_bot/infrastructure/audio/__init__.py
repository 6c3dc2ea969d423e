"""Audio infrastructure - yt-dlp resolver and the fetch/transcode pipeline."""

from discord_stream_bot.infrastructure.audio.models import (
    ExtractorArgs,
    YouTubeExtractorConfig,
    YtDlpEntry,
    YtDlpOpts,
    YtDlpSearchResult,
)
from discord_stream_bot.infrastructure.audio.stream_pipeline import (
    PipelineConfig,
    SubprocessPipelineHandle,
    SubprocessStreamPipeline,
)
from discord_stream_bot.infrastructure.audio.ytdlp_resolver import YtDlpTrackResolver

__all__ = [
    "ExtractorArgs",
    "PipelineConfig",
    "SubprocessPipelineHandle",
    "SubprocessStreamPipeline",
    "YouTubeExtractorConfig",
    "YtDlpEntry",
    "YtDlpOpts",
    "YtDlpSearchResult",
    "YtDlpTrackResolver",
]

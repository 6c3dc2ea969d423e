"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from discord_stream_bot.application.interfaces.stream_pipeline import (
    PipelineHandle,
    StreamPipeline,
)
from discord_stream_bot.application.interfaces.track_resolver import TrackResolver
from discord_stream_bot.application.interfaces.voice_adapter import (
    AudioSink,
    VoiceConnection,
    VoiceTransport,
)

__all__ = [
    "TrackResolver",
    "StreamPipeline",
    "PipelineHandle",
    "VoiceTransport",
    "VoiceConnection",
    "AudioSink",
]

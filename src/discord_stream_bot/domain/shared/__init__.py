"""
Shared Domain Kernel

Contains types, messages, and exceptions shared across the bot.
"""

from discord_stream_bot.domain.shared.exceptions import (
    DomainError,
    InvalidResultError,
    NoResultsError,
    PipelineError,
    ResolutionError,
    SinkError,
    VoiceConnectError,
)

__all__ = [
    "DomainError",
    "ResolutionError",
    "NoResultsError",
    "InvalidResultError",
    "VoiceConnectError",
    "PipelineError",
    "SinkError",
]

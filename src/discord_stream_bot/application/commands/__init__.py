"""
Application Commands (CQRS Write Side)

Command objects and the dispatcher that executes them.
Commands represent intent to change the system state.
"""

from discord_stream_bot.application.commands.dispatcher import (
    CommandDispatcher,
    CommandReply,
)
from discord_stream_bot.application.commands.leave_channel import LeaveChannelCommand
from discord_stream_bot.application.commands.play_track import PlayTrackCommand
from discord_stream_bot.application.commands.skip_track import SkipTrackCommand

__all__ = [
    # Dispatch
    "CommandDispatcher",
    "CommandReply",
    # Play
    "PlayTrackCommand",
    # Skip
    "SkipTrackCommand",
    # Leave
    "LeaveChannelCommand",
]

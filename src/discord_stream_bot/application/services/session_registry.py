"""In-memory registry of playback sessions keyed by guild."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from .playback_session import PlaybackSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[int], "PlaybackSession"]


class SessionRegistry:
    """Maps guild ids to their single PlaybackSession.

    Sessions are created on first use and live as long as the process.
    ``get_or_create`` never awaits between lookup and insert, so on the event
    loop each guild gets exactly one session, and guilds never wait on each other.
    """

    def __init__(self, factory: SessionFactory) -> None:
        self._factory = factory
        self._sessions: dict[int, PlaybackSession] = {}

    def get_or_create(self, guild_id: int) -> PlaybackSession:
        session = self._sessions.get(guild_id)
        if session is None:
            session = self._factory(guild_id)
            self._sessions[guild_id] = session
            logger.debug(LogTemplates.SESSION_CREATED, guild_id)
        return session

    def get(self, guild_id: int) -> PlaybackSession | None:
        return self._sessions.get(guild_id)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    async def close_all(self) -> int:
        """Tear down every session. Returns the number of sessions closed."""
        sessions = list(self._sessions.values())
        results = await asyncio.gather(*(s.close() for s in sessions), return_exceptions=True)

        for session, result in zip(sessions, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(
                    LogTemplates.COMMAND_FAILED, "close", session.guild_id, repr(result)
                )

        logger.info(LogTemplates.REGISTRY_CLOSED, len(sessions))
        return len(sessions)

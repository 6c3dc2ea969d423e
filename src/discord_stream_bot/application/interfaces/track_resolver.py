"""Port interface for resolving queries and links to queue items."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.music.entities import QueueItem


class TrackResolver(ABC):
    """Interface for turning free text or a direct link into a playable reference."""

    @abstractmethod
    async def resolve(self, query: str) -> "QueueItem":
        """Resolve a query or URL to a queue item.

        Raises:
            ResolutionError: (or a subclass) when nothing playable is found.
        """
        ...

    @abstractmethod
    def is_direct_link(self, query: str) -> bool:
        ...

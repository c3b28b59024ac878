"""
Media Match Engine - Abstract Base Class

Defines the interface the display layer talks to: submit media,
read the catalog, and shut down cleanly.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from media_match.models.match import Match
from media_match.models.media_item import MediaItem, MediaPayload


class MediaMatchEngine(ABC):
    """
    Abstract Base Class for the media match engine.

    1. submit() - Register media and analyze/match it in the background
    2. get() / list_items() / list_completed() - Catalog reads
    3. resolve_target() - Follow a match to the item it references
    """

    @abstractmethod
    async def submit(self, payload: MediaPayload) -> UUID:
        """
        Register a media payload and start processing it.

        Registration is complete when this returns; analysis and
        matching continue in the background.

        Args:
            payload: Uploaded media bytes

        Returns:
            The new item's id
        """
        pass

    @abstractmethod
    def get(self, item_id: UUID) -> MediaItem:
        """Get one item. Raises ItemNotFoundError if unknown."""
        pass

    @abstractmethod
    def list_items(self) -> List[MediaItem]:
        """All items in registration order."""
        pass

    @abstractmethod
    def list_completed(self) -> List[MediaItem]:
        """Completed items in registration order."""
        pass

    @abstractmethod
    def resolve_target(self, match: Match) -> Optional[MediaItem]:
        """The match's target item, or None if it cannot be found."""
        pass

    @abstractmethod
    async def wait_until_idle(self) -> None:
        """Wait for every submitted item to finish analysis and matching."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Cancel background work and release resources."""
        pass

"""
Catalog Query Layer

Read-only projection over the catalog for presentation purposes.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from media_match.catalog.catalog import Catalog
from media_match.catalog.errors import ItemNotFoundError
from media_match.models.match import Match
from media_match.models.media_item import ItemState, MediaItem


class ResolvedMatch(BaseModel):
    """A match paired with the current snapshot of its target, if any."""
    match: Match
    target: Optional[MediaItem] = None


class CatalogQuery:
    """Lookups used by the display layer. Never mutates the catalog."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def get(self, item_id: UUID) -> MediaItem:
        return self.catalog.get(item_id)

    def list_all(self) -> List[MediaItem]:
        return self.catalog.list()

    def list_completed(self) -> List[MediaItem]:
        return self._list_in_state(ItemState.COMPLETED)

    def list_failed(self) -> List[MediaItem]:
        return self._list_in_state(ItemState.FAILED)

    def resolve_target(self, match: Match) -> Optional[MediaItem]:
        """
        Current snapshot of the item a match points at.

        Returns None when the target is unknown, so one dangling match
        does not fail a whole view.
        """
        try:
            return self.catalog.get(match.target_id)
        except ItemNotFoundError:
            return None

    def resolve_matches(self, item_id: UUID) -> List[ResolvedMatch]:
        """Matches of one item, in ranking order, each with its resolved target."""
        item = self.catalog.get(item_id)
        return [
            ResolvedMatch(match=match, target=self.resolve_target(match))
            for match in item.matches
        ]

    def _list_in_state(self, state: ItemState) -> List[MediaItem]:
        return [item for item in self.catalog.list() if ItemState(item.state) == state]

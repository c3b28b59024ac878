"""
Catalog

The shared, in-memory store of every ingested item and its lifecycle
state. All mutation goes through the guarded operations here; every
read hands out a deep copy so callers never share live item state.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from media_match.catalog.errors import InvalidTransitionError, ItemNotFoundError
from media_match.models.match import Match
from media_match.models.media_item import DescriptorBundle, ItemState, MediaItem

logger = logging.getLogger("media_match.catalog")


# Pending -> Analyzing -> Completed | Failed. Nothing leaves a terminal state.
ALLOWED_TRANSITIONS: Dict[ItemState, frozenset] = {
    ItemState.PENDING: frozenset({ItemState.ANALYZING}),
    ItemState.ANALYZING: frozenset({ItemState.COMPLETED, ItemState.FAILED}),
    ItemState.COMPLETED: frozenset(),
    ItemState.FAILED: frozenset(),
}


class Catalog:
    """
    Thread-safe store of all media items.

    A single lock serializes mutations and reads, which makes per-item
    operations linearizable and rules out torn reads. Operations are
    short and never await, so the lock is safe to take from both the
    event loop and worker threads.

    Usage:
        catalog = Catalog()
        item_id = catalog.register("mem://clip-1", display_name="clip.mp4")
        catalog.transition(item_id, ItemState.ANALYZING)
    """

    def __init__(self):
        # dicts keep insertion order, which is registration order
        self._items: Dict[UUID, MediaItem] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, item_id: UUID) -> bool:
        with self._lock:
            return item_id in self._items

    def register(self, source_ref: str, display_name: Optional[str] = None) -> UUID:
        """Create a pending item for `source_ref` and return its id."""
        with self._lock:
            item = MediaItem(source_ref=source_ref, display_name=display_name or source_ref)
            while item.id in self._items:
                item = MediaItem(source_ref=source_ref, display_name=item.display_name)
            self._items[item.id] = item

        logger.debug(f"Registered item {item.id} ({item.display_name})")
        return item.id

    def transition(
        self,
        item_id: UUID,
        new_state: ItemState,
        descriptors: Optional[DescriptorBundle] = None,
        error: Optional[str] = None,
    ) -> MediaItem:
        """
        Move an item along one edge of its state machine.

        Args:
            item_id: Item to update
            new_state: Requested state
            descriptors: Required for (and only stored on) the completed edge
            error: Failure reason, stored on the failed edge

        Returns:
            A copy of the updated item

        Raises:
            ItemNotFoundError: If the id is unknown
            InvalidTransitionError: If the edge is not allowed
        """
        new_state = ItemState(new_state)

        with self._lock:
            item = self._require(item_id)
            current = ItemState(item.state)

            if new_state not in ALLOWED_TRANSITIONS[current]:
                raise InvalidTransitionError(item_id, current.value, new_state.value)

            update = {"state": new_state, "updated_at": datetime.now()}
            if new_state == ItemState.COMPLETED:
                if descriptors is None:
                    raise InvalidTransitionError(
                        item_id, current.value, new_state.value,
                        detail="descriptors are required to complete an item",
                    )
                update["descriptors"] = descriptors.model_copy(deep=True)
            elif new_state == ItemState.FAILED:
                update["error"] = error or "analysis failed"

            updated = item.model_copy(update=update)
            self._items[item_id] = updated
            snapshot = updated.model_copy(deep=True)

        logger.debug(f"Item {item_id}: {current.value} -> {new_state.value}")
        return snapshot

    def set_matches(self, item_id: UUID, matches: Sequence[Match]) -> MediaItem:
        """
        Store the ranked match list for an item, overwriting any previous one.

        Matches are only ever recorded on completed items.

        Raises:
            ItemNotFoundError: If the id is unknown
            InvalidTransitionError: If the item is not completed
        """
        with self._lock:
            item = self._require(item_id)
            if ItemState(item.state) != ItemState.COMPLETED:
                raise InvalidTransitionError(
                    item_id, ItemState(item.state).value, "matched",
                    detail="matches can only be set on completed items",
                )

            updated = item.model_copy(update={
                "matches": [match.model_copy() for match in matches],
                "matched_at": datetime.now(),
            })
            self._items[item_id] = updated
            snapshot = updated.model_copy(deep=True)

        logger.debug(f"Item {item_id}: stored {len(matches)} matches")
        return snapshot

    def snapshot_completed_except(self, item_id: UUID) -> List[MediaItem]:
        """
        Point-in-time copies of every completed item other than `item_id`.

        Returned in registration order. Items completing after this call
        are not reflected in the result.
        """
        with self._lock:
            return [
                item.model_copy(deep=True)
                for item in self._items.values()
                if item.id != item_id and ItemState(item.state) == ItemState.COMPLETED
            ]

    def get(self, item_id: UUID) -> MediaItem:
        """Get a copy of one item. Raises ItemNotFoundError if unknown."""
        with self._lock:
            return self._require(item_id).model_copy(deep=True)

    def list(self) -> List[MediaItem]:
        """Copies of every item, in registration order."""
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items.values()]

    def count_by_state(self) -> Dict[str, int]:
        """Number of items currently in each state."""
        counts = {state.value: 0 for state in ItemState}
        with self._lock:
            for item in self._items.values():
                counts[ItemState(item.state).value] += 1
        return counts

    def _require(self, item_id: UUID) -> MediaItem:
        # caller holds the lock
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

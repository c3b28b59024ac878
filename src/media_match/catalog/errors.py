"""
Catalog Errors

Contract violations raised by the catalog. These are caller
programming errors and propagate instead of being absorbed.
"""

from uuid import UUID


class CatalogError(Exception):
    """Base class for catalog contract violations."""
    pass


class ItemNotFoundError(CatalogError, KeyError):
    """Raised when an unknown item id is referenced."""

    def __init__(self, item_id: UUID):
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")

    def __str__(self) -> str:
        return f"Item not found: {self.item_id}"


class InvalidTransitionError(CatalogError):
    """Raised when a requested state change is not an allowed edge."""

    def __init__(self, item_id: UUID, current: str, requested: str, detail: str = ""):
        self.item_id = item_id
        self.current = current
        self.requested = requested
        message = f"Invalid transition for {item_id}: {current} -> {requested}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class MatchPreconditionError(CatalogError):
    """Raised when matching is requested for an item that is not completed."""
    pass

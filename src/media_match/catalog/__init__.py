"""Catalog package - Shared item store and its read-only query layer."""

from media_match.catalog.catalog import ALLOWED_TRANSITIONS, Catalog
from media_match.catalog.errors import (
    CatalogError,
    InvalidTransitionError,
    ItemNotFoundError,
    MatchPreconditionError,
)
from media_match.catalog.query import CatalogQuery, ResolvedMatch

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Catalog",
    "CatalogError",
    "CatalogQuery",
    "InvalidTransitionError",
    "ItemNotFoundError",
    "MatchPreconditionError",
    "ResolvedMatch",
]

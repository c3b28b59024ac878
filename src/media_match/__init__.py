"""
Media Match

Ingests uploaded media, extracts face/voice descriptors through an
external analysis model, and cross-matches every newly analyzed item
against all previously analyzed ones.
"""

from media_match.engine.match_engine import MediaMatchSystem
from media_match.models.match import Match, MatchKind
from media_match.models.media_item import ItemState, MediaItem, MediaPayload

__version__ = "0.1.0"
__all__ = ["ItemState", "Match", "MatchKind", "MediaItem", "MediaMatchSystem", "MediaPayload"]

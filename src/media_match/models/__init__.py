"""Data models package."""

from media_match.models.match import BiometricProfile, ComparisonVerdict, Match, MatchKind
from media_match.models.media_item import (
    DescriptorBundle,
    ItemState,
    MediaItem,
    MediaPayload,
    TranscriptLine,
)

__all__ = [
    "BiometricProfile",
    "ComparisonVerdict",
    "DescriptorBundle",
    "ItemState",
    "Match",
    "MatchKind",
    "MediaItem",
    "MediaPayload",
    "TranscriptLine",
]

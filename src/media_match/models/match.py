"""
Match Data Model

A detected correspondence between an item and another, earlier
analyzed item, plus the raw comparator verdict it is built from.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class MatchKind(str, Enum):
    """Which biometric channel produced the match."""
    FACE = "Face"
    VOICE = "Voice"
    FACE_AND_VOICE = "Face + Voice"

    @classmethod
    def parse(cls, value: str) -> "MatchKind":
        """Accept the wire spellings used by comparator models."""
        normalized = value.strip().lower().replace("_", " ")
        aliases = {
            "face": cls.FACE,
            "voice": cls.VOICE,
            "face + voice": cls.FACE_AND_VOICE,
            "face+voice": cls.FACE_AND_VOICE,
            "face and voice": cls.FACE_AND_VOICE,
            "faceandvoice": cls.FACE_AND_VOICE,
        }
        if normalized not in aliases:
            raise ValueError(f"Unknown match kind: {value!r}")
        return aliases[normalized]


class BiometricProfile(BaseModel):
    """Face and voice descriptions of one item, as sent to the comparator."""

    face: str
    voice: str
    label: str = ""


class ComparisonVerdict(BaseModel):
    """Similarity verdict returned by the comparator for one pair."""

    similarity_percentage: int = Field(..., ge=0, le=100)
    match_kind: MatchKind
    reason: str = ""


class Match(BaseModel):
    """
    An accepted match recorded on the owning item.

    Matching is one-directional: a match on A referencing B does not
    imply a match on B referencing A.
    """

    target_id: UUID
    similarity: int = Field(..., ge=0, le=100)
    kind: MatchKind
    reason: str = ""
    detected_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_verdict(
        cls,
        target_id: UUID,
        verdict: ComparisonVerdict,
        detected_at: Optional[datetime] = None,
    ) -> "Match":
        return cls(
            target_id=target_id,
            similarity=verdict.similarity_percentage,
            kind=verdict.match_kind,
            reason=verdict.reason,
            detected_at=detected_at or datetime.now(),
        )

    class Config:
        use_enum_values = True

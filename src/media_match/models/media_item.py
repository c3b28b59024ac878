"""
Media Item Data Model

Defines the MediaItem tracked by the catalog through its
analysis/matching lifecycle, plus the descriptor bundle produced
by the analysis service.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from media_match.models.match import Match


class ItemState(str, Enum):
    """Lifecycle state of a media item."""
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


class TranscriptLine(BaseModel):
    """One spoken line: the source-language text and its translation."""
    source_text: str = Field(..., description="Line as spoken, kept verbatim")
    translated_text: str = Field(default="", description="Natural translation of the line")


class DescriptorBundle(BaseModel):
    """
    Output of the analysis service for one item.

    Face and voice descriptions feed the comparator; the transcript and
    summary are carried through for display only.
    """

    face_description: str = Field(..., description="Detailed description of the main face")
    voice_description: str = Field(..., description="Timbre, pitch and tone of the main voice")
    transcript_lines: List[TranscriptLine] = Field(default_factory=list)
    summary: str = Field(default="", description="Short summary of the media content")


class MediaItem(BaseModel):
    """
    A single ingested media unit.

    `descriptors` is present iff the item is completed. `matched_at` is
    stamped when matching has run, so an empty `matches` list with a
    `matched_at` means "matching attempted, none found".
    """

    id: UUID = Field(default_factory=uuid4)
    source_ref: str = Field(..., description="Opaque handle to the media payload")
    display_name: str = Field(default="", description="Label shown for this item (file name)")
    registered_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    state: ItemState = Field(default=ItemState.PENDING)
    descriptors: Optional[DescriptorBundle] = None
    matches: List[Match] = Field(default_factory=list)
    matched_at: Optional[datetime] = None
    error: Optional[str] = Field(
        default=None,
        description="Failure reason when the item is in the failed state"
    )

    @property
    def is_terminal(self) -> bool:
        return self.state in (ItemState.COMPLETED, ItemState.FAILED)

    @property
    def is_matched(self) -> bool:
        """True once a matcher run has stored its result (possibly empty)."""
        return self.matched_at is not None

    class Config:
        use_enum_values = True


class MediaPayload(BaseModel):
    """Raw media bytes as uploaded, with the metadata needed to analyze them."""

    data: bytes
    mime_type: str = "video/mp4"
    file_name: str = ""

    @property
    def size_bytes(self) -> int:
        return len(self.data)

"""Engine package - Core MediaMatchEngine."""

from media_match.engine.base import MediaMatchEngine
from media_match.engine.match_engine import MediaMatchSystem

__all__ = ["MediaMatchEngine", "MediaMatchSystem"]

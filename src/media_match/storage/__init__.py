"""Storage package - In-memory media payload store."""

from media_match.storage.media_store import MediaNotFoundError, MediaStore, PayloadTooLargeError

__all__ = ["MediaNotFoundError", "MediaStore", "PayloadTooLargeError"]

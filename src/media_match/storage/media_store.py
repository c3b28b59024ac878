"""
Media Store

Holds uploaded media payloads in memory behind opaque source
references. The catalog only ever sees the reference.
"""

import mimetypes
import threading
from pathlib import Path
from typing import Dict, Optional, Union
from uuid import uuid4

import aiofiles

from media_match.models.media_item import MediaPayload


class MediaNotFoundError(KeyError):
    """Raised when a source reference has no stored payload."""
    pass


class PayloadTooLargeError(ValueError):
    """Raised when a payload exceeds the configured size limit."""
    pass


class MediaStore:
    """
    In-memory payload store keyed by `mem://` references.

    A payload is held until its item has been analyzed and is then
    discarded by the ingestion pipeline.
    """

    SCHEME = "mem://"

    def __init__(self, max_payload_bytes: Optional[int] = None):
        self.max_payload_bytes = max_payload_bytes
        self._payloads: Dict[str, MediaPayload] = {}
        self._lock = threading.Lock()

    def check(self, payload: MediaPayload) -> None:
        """Raise PayloadTooLargeError if the payload exceeds the size limit."""
        if self.max_payload_bytes and payload.size_bytes > self.max_payload_bytes:
            raise PayloadTooLargeError(
                f"{payload.file_name or 'payload'} is {payload.size_bytes} bytes, "
                f"limit is {self.max_payload_bytes}"
            )

    def put(self, payload: MediaPayload) -> str:
        """Store a payload and return its source reference."""
        self.check(payload)

        source_ref = f"{self.SCHEME}{uuid4().hex}"
        with self._lock:
            self._payloads[source_ref] = payload
        return source_ref

    def get(self, source_ref: str) -> MediaPayload:
        with self._lock:
            payload = self._payloads.get(source_ref)
        if payload is None:
            raise MediaNotFoundError(f"No media stored for {source_ref}")
        return payload

    def discard(self, source_ref: str) -> None:
        """Drop a payload. Unknown references are ignored."""
        with self._lock:
            self._payloads.pop(source_ref, None)

    def __contains__(self, source_ref: str) -> bool:
        with self._lock:
            return source_ref in self._payloads

    def __len__(self) -> int:
        with self._lock:
            return len(self._payloads)

    @staticmethod
    async def load_file(path: Union[str, Path], mime_type: Optional[str] = None) -> MediaPayload:
        """Read a media file from disk into a payload."""
        path = Path(path)
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        async with aiofiles.open(path, "rb") as f:
            data = await f.read()

        return MediaPayload(data=data, mime_type=mime_type, file_name=path.name)

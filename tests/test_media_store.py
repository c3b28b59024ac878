"""
Tests for MediaStore
"""

import pytest

from media_match.models.media_item import MediaPayload
from media_match.storage.media_store import MediaNotFoundError, MediaStore, PayloadTooLargeError


class TestMediaStore:
    """Tests for put/get and size limits."""

    def test_put_and_get(self):
        store = MediaStore()
        payload = MediaPayload(data=b"frames", file_name="a.mp4")

        source_ref = store.put(payload)

        assert source_ref.startswith(MediaStore.SCHEME)
        assert source_ref in store
        assert store.get(source_ref).data == b"frames"
        assert len(store) == 1

    def test_same_payload_twice_gets_two_refs(self):
        store = MediaStore()
        payload = MediaPayload(data=b"frames", file_name="a.mp4")

        assert store.put(payload) != store.put(payload)
        assert len(store) == 2

    def test_get_unknown_raises(self):
        store = MediaStore()
        with pytest.raises(MediaNotFoundError):
            store.get("mem://missing")

    def test_rejects_oversized_payload(self):
        store = MediaStore(max_payload_bytes=4)

        with pytest.raises(PayloadTooLargeError, match="big.mp4"):
            store.put(MediaPayload(data=b"12345", file_name="big.mp4"))
        assert len(store) == 0

        store.put(MediaPayload(data=b"1234"))
        assert len(store) == 1


class TestLoadFile:
    """Tests for MediaStore.load_file."""

    @pytest.mark.asyncio
    async def test_guesses_mime_type(self, tmp_path):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"\x00\x01\x02")

        payload = await MediaStore.load_file(path)

        assert payload.data == b"\x00\x01\x02"
        assert payload.mime_type == "video/mp4"
        assert payload.file_name == "clip.mp4"

    @pytest.mark.asyncio
    async def test_explicit_mime_type(self, tmp_path):
        path = tmp_path / "voice.bin"
        path.write_bytes(b"abc")

        payload = await MediaStore.load_file(str(path), mime_type="audio/ogg")
        assert payload.mime_type == "audio/ogg"

    @pytest.mark.asyncio
    async def test_unknown_extension_falls_back(self, tmp_path):
        path = tmp_path / "capture.zzzunknown"
        path.write_bytes(b"abc")

        payload = await MediaStore.load_file(path)
        assert payload.mime_type == "application/octet-stream"


class TestCheckAndDiscard:
    """Tests for size checks without storing, and payload release."""

    def test_check_does_not_store(self):
        store = MediaStore(max_payload_bytes=4)

        store.check(MediaPayload(data=b"1234"))
        with pytest.raises(PayloadTooLargeError):
            store.check(MediaPayload(data=b"12345"))
        assert len(store) == 0

    def test_discard(self):
        store = MediaStore()
        source_ref = store.put(MediaPayload(data=b"frames"))

        store.discard(source_ref)
        store.discard(source_ref)

        assert source_ref not in store
        with pytest.raises(MediaNotFoundError):
            store.get(source_ref)

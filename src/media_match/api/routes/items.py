"""
Item API Routes

Endpoints for uploading media and reading the catalog.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from media_match.api.main import get_system
from media_match.catalog.errors import ItemNotFoundError
from media_match.catalog.query import ResolvedMatch
from media_match.engine.match_engine import MediaMatchSystem
from media_match.models.media_item import MediaItem, MediaPayload
from media_match.storage.media_store import PayloadTooLargeError

router = APIRouter()


@router.post("", status_code=202)
async def upload_items(
    files: List[UploadFile] = File(...),
    system: MediaMatchSystem = Depends(get_system),
):
    """
    Upload one or more media files.

    Items are registered in upload order and analyzed in the
    background; poll the item endpoints for their state.
    """
    payloads = []
    for upload in files:
        data = await upload.read()
        payloads.append(MediaPayload(
            data=data,
            mime_type=upload.content_type or "application/octet-stream",
            file_name=upload.filename or "",
        ))

    try:
        item_ids = await system.submit_many(payloads)
    except PayloadTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))

    return {
        "items": [
            {"id": str(item_id), "file_name": payload.file_name}
            for item_id, payload in zip(item_ids, payloads)
        ],
    }


@router.get("", response_model=List[MediaItem])
async def list_items(system: MediaMatchSystem = Depends(get_system)):
    """All items in registration order."""
    return system.list_items()


@router.get("/completed", response_model=List[MediaItem])
async def list_completed(system: MediaMatchSystem = Depends(get_system)):
    """Items whose analysis has completed."""
    return system.list_completed()


@router.get("/{item_id}", response_model=MediaItem)
async def get_item(item_id: UUID, system: MediaMatchSystem = Depends(get_system)):
    """One item with its descriptors and matches."""
    try:
        return system.get(item_id)
    except ItemNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{item_id}/matches", response_model=List[ResolvedMatch])
async def get_item_matches(item_id: UUID, system: MediaMatchSystem = Depends(get_system)):
    """
    Ranked matches of one item, each with its target's current snapshot.

    A target that cannot be found is returned as null rather than
    failing the whole list.
    """
    try:
        return system.resolve_matches(item_id)
    except ItemNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

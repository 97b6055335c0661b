"""Character CRUD endpoints (single + batch)."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from hp_tracker import storage
from hp_tracker.broadcast import ConnectionManager
from hp_tracker.characters import (
    CharacterError,
    CharacterNotFound,
    create_character,
    create_characters,
    delete_characters,
    update_character,
)
from hp_tracker.uploads import UploadRegistry

from .deps import get_broadcaster, get_uploads
from .models import BatchCreateCharacters, BatchDeleteCharacters

router = APIRouter()


@router.get("/characters")
async def list_characters():
    """List all characters."""
    return storage.get_characters()


@router.post("/characters", status_code=201)
async def create_character_endpoint(
    body: Any = Body(...),
    uploads: UploadRegistry = Depends(get_uploads),
    broadcaster: ConnectionManager = Depends(get_broadcaster),
):
    """Create a character. hp is clamped to maxHp."""
    try:
        char, characters = create_character(body, uploads)
    except CharacterError as e:
        raise HTTPException(400, str(e))
    await broadcaster.characters_updated(characters)
    return char


@router.post("/characters/batch", status_code=201)
async def create_characters_batch(
    body: BatchCreateCharacters,
    uploads: UploadRegistry = Depends(get_uploads),
    broadcaster: ConnectionManager = Depends(get_broadcaster),
):
    """Import many characters at once. Any invalid item rejects the whole batch."""
    if not body.characters:
        raise HTTPException(
            422,
            "Invalid request format. Expected an array of characters in 'characters' property",
        )
    try:
        created, characters = create_characters(body.characters, uploads)
    except CharacterError as e:
        raise HTTPException(
            400, {"error": str(e), "details": e.details, "createdCount": 0}
        )
    await broadcaster.characters_updated(characters)
    return {
        "ok": True,
        "createdCount": len(created),
        "createdCharacters": created,
        "characters": characters,
    }


@router.put("/characters/{char_id}")
async def update_character_endpoint(
    char_id: str,
    body: Any = Body(...),
    uploads: UploadRegistry = Depends(get_uploads),
    broadcaster: ConnectionManager = Depends(get_broadcaster),
):
    """Merge fields into a character. hp is clamped to maxHp."""
    try:
        char, characters = update_character(char_id, body, uploads)
    except CharacterNotFound:
        raise HTTPException(404, "Character not found")
    except CharacterError as e:
        raise HTTPException(400, str(e))
    await broadcaster.characters_updated(characters)
    await broadcaster.character_updated(char)
    return char


@router.delete("/characters/batch")
async def delete_characters_batch(
    body: BatchDeleteCharacters,
    uploads: UploadRegistry = Depends(get_uploads),
    broadcaster: ConnectionManager = Depends(get_broadcaster),
):
    """Delete several characters by id, releasing icons nothing else uses."""
    if not body.ids:
        raise HTTPException(400, "IDs array is required and must not be empty")
    removed, remaining = delete_characters(body.ids, uploads)
    await broadcaster.characters_updated(remaining)
    return {
        "ok": True,
        "deletedCount": len(removed),
        "deletedIds": [c["id"] for c in removed],
    }


@router.delete("/characters/{char_id}")
async def delete_character_endpoint(
    char_id: str,
    uploads: UploadRegistry = Depends(get_uploads),
    broadcaster: ConnectionManager = Depends(get_broadcaster),
):
    """Delete one character and its icon if nothing else uses it."""
    if storage.get_character(char_id) is None:
        raise HTTPException(404, "Character not found")
    _, remaining = delete_characters([char_id], uploads)
    await broadcaster.characters_updated(remaining)
    return {"ok": True}

"""Live overlay page and the broadcast channel socket."""

import json
import logging

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse
from pydantic import ValidationError

from hp_tracker import storage
from hp_tracker.broadcast import ERROR, UPDATE_CHARACTER
from hp_tracker.characters import CharacterError, CharacterNotFound, update_character
from hp_tracker.overlay import OverlayError, render_overlay

from .models import SocketMessage, SocketUpdateCharacter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/overlay/{char_id}", response_class=HTMLResponse)
async def overlay_page(char_id: str):
    """Standalone HTML overlay for one character, live-updated over /ws."""
    character = storage.get_character(char_id)
    if character is None:
        raise HTTPException(404, "Character doesn't exist.")
    try:
        html = render_overlay(character, storage.get_settings())
    except OverlayError as e:
        raise HTTPException(500, str(e))
    return HTMLResponse(html)


@router.websocket("/ws")
async def broadcast_socket(ws: WebSocket):
    """Subscribe to change events; accepts updateCharacter from clients."""
    broadcaster = ws.app.state.broadcaster
    uploads = ws.app.state.uploads
    await broadcaster.connect(ws)
    try:
        while True:
            raw = await ws.receive_text()
            try:
                message = SocketMessage.model_validate(json.loads(raw))
                if message.event != UPDATE_CHARACTER:
                    raise CharacterError(f"Unknown event: {message.event}")
                payload = SocketUpdateCharacter.model_validate(message.data)
                char, characters = update_character(payload.id, payload.data, uploads)
            except CharacterNotFound as e:
                await broadcaster.send(ws, ERROR, {"error": f"Character not found: {e}"})
                continue
            except (CharacterError, ValidationError, ValueError) as e:
                logger.warning("Rejected socket message: %s", e)
                await broadcaster.send(ws, ERROR, {"error": str(e)})
                continue
            await broadcaster.characters_updated(characters)
            await broadcaster.character_updated(char)
    except WebSocketDisconnect as e:
        logger.debug("WebSocket closed (code=%s)", e.code)
    finally:
        broadcaster.disconnect(ws)

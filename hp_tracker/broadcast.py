"""Broadcast channel: fan-out of named JSON events to connected WebSockets.

Frames are {"event": <name>, "data": <payload>}. Server events:
  charactersUpdated   full character list
  characterUpdated    {"id": ..., "character": {...}}
  settingsUpdated     full settings document

No acknowledgement or replay; a client that (re)connects fetches current
state over HTTP. Sends are awaited, so a route that broadcasts before
returning has handed the event to every live socket before its response.
"""

import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)

CHARACTERS_UPDATED = "charactersUpdated"
CHARACTER_UPDATED = "characterUpdated"
SETTINGS_UPDATED = "settingsUpdated"
UPDATE_CHARACTER = "updateCharacter"
ERROR = "error"


class ConnectionManager:
    """Manages active WebSocket connections and broadcasts events."""

    def __init__(self):
        self.connections: list[WebSocket] = []

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.connections.append(ws)
        logger.info("WebSocket connected (%d active)", len(self.connections))

    def disconnect(self, ws: WebSocket):
        if ws in self.connections:
            self.connections.remove(ws)
        logger.info("WebSocket disconnected (%d active)", len(self.connections))

    async def send(self, ws: WebSocket, event: str, data: Any):
        await ws.send_json({"event": event, "data": data})

    async def broadcast(self, event: str, data: Any):
        """Send an event to all connected clients, dropping dead ones."""
        dead = []
        for ws in list(self.connections):
            try:
                await self.send(ws, event, data)
            except Exception as e:
                logger.warning("Dropping WebSocket after failed send: %s", e)
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws)

    async def characters_updated(self, characters: list[dict]):
        await self.broadcast(CHARACTERS_UPDATED, characters)

    async def character_updated(self, character: dict):
        await self.broadcast(CHARACTER_UPDATED, {"id": character["id"], "character": character})

    async def settings_updated(self, settings: dict):
        await self.broadcast(SETTINGS_UPDATED, settings)

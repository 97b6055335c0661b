"""Pydantic request models for API and WebSocket endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class BatchCreateCharacters(BaseModel):
    characters: list[Any]


class BatchDeleteCharacters(BaseModel):
    ids: list[str]


class FileNameBody(BaseModel):
    fileName: str


class SocketMessage(BaseModel):
    event: str
    data: Any = None


class SocketUpdateCharacter(BaseModel):
    id: str
    data: dict[str, Any] = Field(default_factory=dict)

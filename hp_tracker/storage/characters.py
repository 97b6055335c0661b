"""Character list file storage."""

from typing import Any

from .core import characters_path, read_json, write_json


def get_characters() -> list[dict[str, Any]]:
    """Load all characters. Returns [] if missing or unreadable."""
    chars = read_json(characters_path(), [])
    return chars if isinstance(chars, list) else []


def save_characters(characters: list[dict[str, Any]]) -> None:
    """Write the full characters list."""
    write_json(characters_path(), characters)


def get_character(char_id: str) -> dict[str, Any] | None:
    """Find a single character by id. Returns None if not found."""
    for char in get_characters():
        if char.get("id") == char_id:
            return char
    return None

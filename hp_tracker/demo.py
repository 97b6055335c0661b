"""Create demo characters for development/testing."""

import copy

from hp_tracker import storage
from hp_tracker.characters import new_character

DEMO_CHARACTERS = [
    {"name": "Gareth the Bold", "hp": 42, "maxHp": 50},
    {"name": "Mira Stormcaller", "hp": 18, "maxHp": 30},
    {"name": "Old Tobin", "hp": 7, "maxHp": 12},
]


def create_demo_data() -> list[dict]:
    """Replace the character list with demo characters and reset settings."""
    characters = [new_character(fields) for fields in DEMO_CHARACTERS]
    storage.save_characters(characters)
    storage.save_settings(copy.deepcopy(storage.DEFAULT_SETTINGS))
    return characters

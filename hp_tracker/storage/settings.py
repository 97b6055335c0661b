"""Overlay/display settings (general + overlay groups)."""

import copy
from typing import Any

from hp_tracker.models import upload_file_name

from .core import read_json, settings_path, write_json

DEFAULT_SETTINGS: dict[str, Any] = {
    "general": {"language": "en-US"},
    "overlay": {
        "show_icon": True,
        "show_character_icon": True,
        "show_health": True,
        "show_name": True,
        "font_size": 14,
        "font_family": "Arial",
        "font_color": "#000000",
        "icons_size": 64,
        "character_icon_size": 170,
        "health_icon_file_path": None,
    },
}


class SettingsError(Exception):
    """Raised when a settings update is malformed."""


class UnknownSettingError(SettingsError):
    """Raised when an update names a top-level key the schema doesn't have."""

    def __init__(self, key: str):
        super().__init__(f"This key is not a setting: {key}")
        self.key = key


def get_settings() -> dict[str, Any]:
    """Read settings, initializing the file with defaults on first use."""
    settings = read_json(settings_path(), DEFAULT_SETTINGS)
    if not isinstance(settings, dict):
        return copy.deepcopy(DEFAULT_SETTINGS)
    return settings


def save_settings(settings: dict[str, Any]) -> None:
    write_json(settings_path(), settings)


def merge_settings(current: dict[str, Any], fields: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of current with fields merged one level deep.

    Every key is checked before anything is merged, so a rejected update
    never yields a partially merged document.
    """
    for key, value in fields.items():
        if key not in DEFAULT_SETTINGS:
            raise UnknownSettingError(key)
        if not isinstance(value, dict):
            raise SettingsError(f"Setting '{key}' must be an object")
    health_icon = fields.get("overlay", {}).get("health_icon_file_path")
    if health_icon:
        try:
            upload_file_name(health_icon)
        except ValueError:
            raise SettingsError(
                "overlay.health_icon_file_path must be empty or an /uploads/ file"
            ) from None
    merged = copy.deepcopy(current)
    for key, value in fields.items():
        merged[key] = {**merged.get(key, {}), **value}
    return merged


def update_settings(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into settings and persist. Returns the full document."""
    settings = merge_settings(get_settings(), fields)
    save_settings(settings)
    return settings

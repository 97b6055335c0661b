"""Storage initialization, document paths, and JSON read/write helpers."""

import copy
import json
import logging
import shutil
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_characters_path: Path | None = None
_settings_path: Path | None = None


def init_storage(characters_path: Path, settings_path: Path) -> None:
    global _characters_path, _settings_path
    _characters_path = characters_path
    _settings_path = settings_path
    _characters_path.parent.mkdir(parents=True, exist_ok=True)
    _settings_path.parent.mkdir(parents=True, exist_ok=True)


def characters_path() -> Path:
    assert _characters_path is not None, "Call init_storage() before using storage"
    return _characters_path


def settings_path() -> Path:
    assert _settings_path is not None, "Call init_storage() before using storage"
    return _settings_path


def read_json(path: Path, fallback: Any) -> Any:
    """Read a JSON document, falling back when it is missing, empty, or corrupt.

    A missing file is created from the fallback. Corrupt content is copied
    to ``<name>.corrupt`` before the fallback is returned, so the next write
    does not destroy the only copy.
    """
    if not path.is_file():
        write_json(path, fallback)
        return copy.deepcopy(fallback)
    raw = path.read_text(encoding="utf-8")
    if not raw.strip():
        return copy.deepcopy(fallback)
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        backup = path.with_name(path.name + ".corrupt")
        logger.warning("Corrupt JSON in %s (%s); backed up to %s", path, e, backup)
        shutil.copyfile(path, backup)
        return copy.deepcopy(fallback)


def write_json(path: Path, data: Any) -> None:
    """Replace the whole document at path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")

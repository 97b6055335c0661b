"""Character records: validation, hp clamping, and store mutations.

Record shape:
  id         uuid4 string, assigned on create, immutable
  name       non-blank string
  icon       "" or an /uploads/ url
  hp         int >= 0, clamped to maxHp on every write (never rejected)
  maxHp      int > 0 (defaults to DEFAULT_MAX_HP)
  createdAt  ISO-8601 UTC timestamp, assigned on create, immutable

Clients may only set name/hp/maxHp/icon; id and createdAt in a payload are
dropped, any other key is a validation error.

Every mutation is a read-modify-write of the whole list through storage.
The HTTP routes and the broadcast channel's updateCharacter event both go
through update_character(), so both paths share the same validation.

Icon ownership: a newly referenced icon is confirmed with the upload
registry; an icon dropped by an update or delete is released only if no other
character (nor the settings health icon) still points at it.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from hp_tracker import storage
from hp_tracker.models import CharacterFields
from hp_tracker.uploads import UploadRegistry

DEFAULT_MAX_HP = 100

ALLOWED_FIELDS = ("name", "hp", "maxHp", "icon")

_SERVER_FIELDS = ("id", "createdAt")


class CharacterError(Exception):
    """Raised when character fields fail validation."""

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.details = details or [message]


class CharacterNotFound(Exception):
    """Raised when no character has the requested id."""


def _format_errors(e: ValidationError) -> list[str]:
    messages = []
    for err in e.errors():
        field = ".".join(str(p) for p in err["loc"]) or "character"
        if err["type"] == "extra_forbidden":
            messages.append(
                f"unexpected field '{field}'. Only allowed: {', '.join(ALLOWED_FIELDS)}"
            )
        else:
            messages.append(f"{field}: {err['msg']}")
    return messages


def parse_fields(data: Any, require_name: bool = False) -> dict[str, Any]:
    """Validate a client payload. Returns only the fields that were supplied."""
    if not isinstance(data, dict):
        raise CharacterError("Invalid character format - expected object")
    payload = {k: v for k, v in data.items() if k not in _SERVER_FIELDS}
    try:
        fields = CharacterFields.model_validate(payload)
    except ValidationError as e:
        details = _format_errors(e)
        raise CharacterError("; ".join(details), details) from e
    supplied = fields.model_dump(exclude_unset=True)
    if require_name and not supplied.get("name"):
        raise CharacterError("name required")
    if supplied.get("name") is None:
        supplied.pop("name", None)
    for key in ("hp", "maxHp", "icon"):
        if key in supplied and supplied[key] is None:
            raise CharacterError(f"{key} must not be null")
    return supplied


def clamp_hp(char: dict[str, Any]) -> dict[str, Any]:
    """Enforce 0 <= hp <= maxHp in place."""
    max_hp = char.setdefault("maxHp", DEFAULT_MAX_HP)
    char["hp"] = max(0, min(char.get("hp", max_hp), max_hp))
    return char


def new_character(fields: dict[str, Any]) -> dict[str, Any]:
    """Build a full record from validated fields, assigning id and createdAt."""
    max_hp = fields.get("maxHp", DEFAULT_MAX_HP)
    char = {
        "id": str(uuid.uuid4()),
        "name": fields["name"],
        "icon": fields.get("icon", ""),
        "hp": fields.get("hp", max_hp),
        "maxHp": max_hp,
        "createdAt": datetime.now(timezone.utc).isoformat(),
    }
    return clamp_hp(char)


def _icon_in_use(url: str, characters: list[dict[str, Any]]) -> bool:
    if any(c.get("icon") == url for c in characters):
        return True
    overlay = storage.get_settings().get("overlay", {})
    return overlay.get("health_icon_file_path") == url


def _release_unused_icons(
    urls: list[str], characters: list[dict[str, Any]], uploads: UploadRegistry
) -> None:
    for url in set(urls):
        if url and not _icon_in_use(url, characters):
            uploads.release(url)


# ── Store mutations ──────────────────────────────────────


def create_character(data: Any, uploads: UploadRegistry) -> tuple[dict, list[dict]]:
    """Validate and append one character. Returns (character, full list)."""
    char = new_character(parse_fields(data, require_name=True))
    characters = storage.get_characters()
    characters.append(char)
    storage.save_characters(characters)
    uploads.confirm_url(char["icon"])
    return char, characters


def create_characters(items: list[Any], uploads: UploadRegistry) -> tuple[list[dict], list[dict]]:
    """Validate and append many characters, all or nothing.

    Every item is validated before anything is written; any failure raises
    CharacterError with one "Character at index i: ..." line per problem.
    """
    created: list[dict[str, Any]] = []
    errors: list[str] = []
    for i, item in enumerate(items):
        try:
            created.append(new_character(parse_fields(item, require_name=True)))
        except CharacterError as e:
            errors.extend(f"Character at index {i}: {d}" for d in e.details)
    if errors:
        raise CharacterError("Validation failed", errors)
    characters = storage.get_characters()
    characters.extend(created)
    storage.save_characters(characters)
    for char in created:
        uploads.confirm_url(char["icon"])
    return created, characters


def update_character(
    char_id: str, data: Any, uploads: UploadRegistry
) -> tuple[dict, list[dict]]:
    """Merge fields into an existing character. Returns (character, full list)."""
    fields = parse_fields(data)
    characters = storage.get_characters()
    for idx, char in enumerate(characters):
        if char.get("id") == char_id:
            break
    else:
        raise CharacterNotFound(char_id)

    old_icon = char.get("icon", "")
    updated = clamp_hp({**char, **fields})
    characters[idx] = updated
    storage.save_characters(characters)

    new_icon = updated.get("icon", "")
    if new_icon and new_icon != old_icon:
        uploads.confirm_url(new_icon)
    if old_icon and old_icon != new_icon:
        _release_unused_icons([old_icon], characters, uploads)
    return updated, characters


def delete_characters(ids: list[str], uploads: UploadRegistry) -> tuple[list[dict], list[dict]]:
    """Remove characters by id. Returns (removed, remaining)."""
    wanted = set(ids)
    characters = storage.get_characters()
    removed = [c for c in characters if c.get("id") in wanted]
    remaining = [c for c in characters if c.get("id") not in wanted]
    storage.save_characters(remaining)
    _release_unused_icons([c.get("icon", "") for c in removed], remaining, uploads)
    return removed, remaining

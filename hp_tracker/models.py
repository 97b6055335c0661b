"""Core domain models.

Pydantic validates client-supplied character fields at every write path
(HTTP create, batch import, update, and the broadcast channel).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

UPLOADS_PREFIX = "/uploads/"


def upload_file_name(url: str) -> str:
    """Return the bare file name an /uploads/ url points at.

    Raises ValueError for anything else: other prefixes, an empty name,
    nested paths, or traversal segments.
    """
    if not isinstance(url, str) or not url.startswith(UPLOADS_PREFIX):
        raise ValueError(f"Invalid upload url: {url!r}")
    name = url[len(UPLOADS_PREFIX):]
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        raise ValueError(f"Invalid upload url: {url!r}")
    return name


class CharacterFields(BaseModel):
    """Client-settable character fields. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    hp: StrictInt | None = Field(default=None, ge=0)
    maxHp: StrictInt | None = Field(default=None, gt=0)
    icon: str | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("name must be a non-empty string")
        return v

    @field_validator("icon")
    @classmethod
    def _icon_is_upload(cls, v: str | None) -> str | None:
        if v:
            try:
                upload_file_name(v)
            except ValueError:
                raise ValueError(
                    f"icon must be empty or '{UPLOADS_PREFIX}<file name>'"
                ) from None
        return v

"""File-based JSON storage for characters and settings.

Data layout (paths supplied by the hosting environment):
  characters.json   Array of character records
  settings.json     Object with `general` and `overlay` groups

Every write replaces the whole document; callers read-modify-write. No
locking is performed, so overlapping mutations are last-write-wins.

A missing document is created from its default on first read. Empty or
unparsable content reads as the default; corrupt bytes are copied to
`<name>.corrupt` first.

Settings: get_settings() returns the stored document. update_settings()
merges one level deep and rejects unknown top-level keys.
"""

# Re-export all public symbols so `from hp_tracker import storage` keeps working.

from .core import (  # noqa: F401
    characters_path,
    init_storage,
    read_json,
    settings_path,
    write_json,
)

from .characters import (  # noqa: F401
    get_character,
    get_characters,
    save_characters,
)

from .settings import (  # noqa: F401
    DEFAULT_SETTINGS,
    SettingsError,
    UnknownSettingError,
    get_settings,
    merge_settings,
    save_settings,
    update_settings,
)

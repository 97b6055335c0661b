"""Uploaded file registry: pending files per session, confirmation, and sweeping.

An uploaded file starts out pending under the session that uploaded it. It
stops being pending once confirmed (referenced by a saved character or
by settings). Pending files are removed when their session is cleaned up, or
by the periodic sweep once they are older than the age threshold. The sweep
checks file age instead of taking a lock, so a file confirmed moments after
upload is never at risk.
"""

import logging
import time
from pathlib import Path

from hp_tracker.models import UPLOADS_PREFIX, upload_file_name

logger = logging.getLogger(__name__)

MAX_PENDING_AGE_SECONDS = 24 * 60 * 60


class UploadRegistry:
    def __init__(self, upload_dir: Path) -> None:
        self.upload_dir = upload_dir
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self._pending: dict[str, set[str]] = {}
        self._owners: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def path_for(self, file_name: str) -> Path:
        """Resolve a bare file name inside the upload dir."""
        name = Path(file_name).name
        if not name or name != file_name or name in (".", ".."):
            raise ValueError(f"Invalid file name: {file_name!r}")
        return self.upload_dir / name

    @staticmethod
    def file_name_from_url(url: str) -> str:
        return upload_file_name(url)

    def _owned_name(self, url: str) -> str | None:
        """File name behind an /uploads/ url; None for urls that aren't uploads."""
        try:
            return upload_file_name(url)
        except ValueError:
            logger.warning("Ignoring non-upload url %r", url)
            return None

    # ------------------------------------------------------------------
    # Session tracking
    # ------------------------------------------------------------------

    def save(self, filename: str, data: bytes, session_id: str) -> dict[str, str]:
        """Write an uploaded file and register it as pending. Returns url + fileName."""
        original = Path(filename or "upload").name or "upload"
        file_name = f"{int(time.time() * 1000)}-{original}"
        self.path_for(file_name).write_bytes(data)
        self.register(session_id, file_name)
        return {"url": f"{UPLOADS_PREFIX}{file_name}", "fileName": file_name}

    def register(self, session_id: str, file_name: str) -> None:
        self._pending.setdefault(session_id, set()).add(file_name)
        self._owners[file_name] = session_id

    def is_pending(self, file_name: str) -> bool:
        return file_name in self._owners

    def pending_files(self, session_id: str) -> set[str]:
        return set(self._pending.get(session_id, ()))

    def confirm(self, file_name: str) -> None:
        """Mark a file as permanently referenced. Unknown files are ignored."""
        session_id = self._owners.pop(file_name, None)
        if session_id is not None and session_id in self._pending:
            self._pending[session_id].discard(file_name)
            if not self._pending[session_id]:
                del self._pending[session_id]

    def confirm_url(self, url: str | None) -> None:
        name = self._owned_name(url) if url else None
        if name:
            self.confirm(name)

    def cleanup_session(self, session_id: str) -> list[str]:
        """Delete every file still pending for a session. Returns the names removed."""
        files = self._pending.pop(session_id, set())
        for file_name in files:
            self._owners.pop(file_name, None)
            self._unlink(file_name)
        return sorted(files)

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete(self, file_name: str) -> None:
        """Remove a file from disk and forget it."""
        self.confirm(file_name)
        self._unlink(file_name)

    def release(self, url: str | None) -> None:
        """Delete the file an /uploads/ url points at, if any."""
        name = self._owned_name(url) if url else None
        if name:
            self.delete(name)

    def sweep(self, max_age: float = MAX_PENDING_AGE_SECONDS) -> list[str]:
        """Delete pending files older than max_age seconds. Returns the names removed."""
        now = time.time()
        removed = []
        for file_name in list(self._owners):
            path = self.path_for(file_name)
            if path.is_file() and now - path.stat().st_mtime <= max_age:
                continue
            self.delete(file_name)
            removed.append(file_name)
        if removed:
            logger.info("Swept %d stale upload(s)", len(removed))
        return removed

    def _unlink(self, file_name: str) -> None:
        path = self.path_for(file_name)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to delete upload %s: %s", path, e)

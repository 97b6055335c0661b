"""Health check, server discovery, and settings endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from hp_tracker import storage
from hp_tracker.broadcast import ConnectionManager
from hp_tracker.uploads import UploadRegistry

from .deps import get_broadcaster, get_uploads

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/server-info")
async def server_info(request: Request):
    """Fixed discovery endpoint: where the API, socket, and overlays live."""
    base = str(request.base_url).rstrip("/")
    ws_base = "wss" + base[len("https"):] if base.startswith("https") else "ws" + base[len("http"):]
    return {
        "baseUrl": base,
        "wsUrl": f"{ws_base}/ws",
        "overlayUrlTemplate": f"{base}/overlay/{{id}}",
    }


@router.get("/settings")
async def get_settings():
    """Get overlay/display settings."""
    return storage.get_settings()


@router.put("/settings")
async def update_settings(
    body: Any = Body(...),
    uploads: UploadRegistry = Depends(get_uploads),
    broadcaster: ConnectionManager = Depends(get_broadcaster),
):
    """Update settings (one-level merge, known top-level keys only)."""
    if not isinstance(body, dict):
        raise HTTPException(400, "Settings body must be an object")
    current = storage.get_settings()
    try:
        merged = storage.merge_settings(current, body)
    except storage.SettingsError as e:
        raise HTTPException(400, str(e))

    old_icon = (current.get("overlay") or {}).get("health_icon_file_path")
    new_icon = (merged.get("overlay") or {}).get("health_icon_file_path")
    storage.save_settings(merged)
    if new_icon and new_icon != old_icon:
        uploads.confirm_url(new_icon)
        if old_icon and not any(c.get("icon") == old_icon for c in storage.get_characters()):
            uploads.release(old_icon)

    await broadcaster.settings_updated(merged)
    return merged

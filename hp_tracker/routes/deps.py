"""Per-app handles injected into endpoints."""

from fastapi import Request

from hp_tracker.broadcast import ConnectionManager
from hp_tracker.uploads import UploadRegistry


def get_uploads(request: Request) -> UploadRegistry:
    return request.app.state.uploads


def get_broadcaster(request: Request) -> ConnectionManager:
    return request.app.state.broadcaster

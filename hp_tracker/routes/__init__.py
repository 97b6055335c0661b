"""FastAPI endpoints.

Endpoint groups under /api: characters (single + batch), settings, uploads,
health, and server-info discovery. The overlay page (/overlay/{id}) and
the broadcast socket (/ws) live at the root, outside /api.
"""

from fastapi import APIRouter

from .characters import router as characters_router
from .overlay import router as overlay_router
from .settings import router as settings_router
from .uploads import router as uploads_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(characters_router)
router.include_router(uploads_router)

__all__ = ["router", "overlay_router"]

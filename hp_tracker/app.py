import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from hp_tracker import storage
from hp_tracker.broadcast import ConnectionManager
from hp_tracker.routes import overlay_router, router
from hp_tracker.uploads import UploadRegistry

load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_UPLOADS_DIR = Path(__file__).parent.parent / "uploads"
SWEEP_INTERVAL_SECONDS = 60 * 60
UPLOAD_CACHE_CONTROL = "public, max-age=31536000"


class CachedStaticFiles(StaticFiles):
    """Static files served with long-lived cache headers."""

    def file_response(self, *args, **kwargs):
        response = super().file_response(*args, **kwargs)
        response.headers["Cache-Control"] = UPLOAD_CACHE_CONTROL
        return response


async def _sweep_loop(uploads: UploadRegistry):
    """Reclaim stale pending uploads once an hour."""
    while True:
        await asyncio.sleep(SWEEP_INTERVAL_SECONDS)
        try:
            uploads.sweep()
        except OSError as e:
            logger.warning("Upload sweep failed: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweep_task = asyncio.create_task(_sweep_loop(app.state.uploads))
    try:
        yield
    finally:
        sweep_task.cancel()


def _error_body(detail) -> dict:
    return detail if isinstance(detail, dict) else {"error": str(detail)}


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(_error_body(exc.detail), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        details = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        ]
        return JSONResponse({"error": "Invalid request", "details": details}, status_code=422)

    @app.exception_handler(OSError)
    async def storage_error(request: Request, exc: OSError):
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Storage failure"}, status_code=500)


def create_app(data_dir: Path | None = None, uploads_dir: Path | None = None) -> FastAPI:
    if data_dir is None:
        data_dir = Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
        characters_path = Path(os.getenv("CHARACTERS_PATH", str(data_dir / "characters.json")))
        settings_path = Path(os.getenv("SETTINGS_PATH", str(data_dir / "settings.json")))
    else:
        characters_path = data_dir / "characters.json"
        settings_path = data_dir / "settings.json"
    storage.init_storage(characters_path, settings_path)
    # Create both documents up front so a fresh install has its defaults on disk.
    storage.get_settings()
    storage.get_characters()

    upload_dir = uploads_dir or Path(os.getenv("UPLOADS_DIR", str(DEFAULT_UPLOADS_DIR)))

    app = FastAPI(title="HP Tracker", lifespan=lifespan)
    app.state.uploads = UploadRegistry(upload_dir)
    app.state.broadcaster = ConnectionManager()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-session-id"],
    )
    _register_error_handlers(app)

    app.include_router(router, prefix="/api")
    app.include_router(overlay_router)
    app.mount("/uploads", CachedStaticFiles(directory=upload_dir), name="uploads")

    return app


# Default app instance for uvicorn (uses DATA_DIR / UPLOADS_DIR env vars or defaults)
app = create_app()

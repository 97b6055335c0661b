"""Uploaded icon files: upload, confirm, session cleanup, delete."""

from fastapi import APIRouter, Depends, File, Header, HTTPException, UploadFile

from hp_tracker.uploads import UploadRegistry

from .deps import get_uploads
from .models import FileNameBody

router = APIRouter()


@router.post("/upload")
async def upload_file(
    file: UploadFile = File(...),
    x_session_id: str = Header("default"),
    uploads: UploadRegistry = Depends(get_uploads),
):
    """Store an uploaded file as pending for the caller's session."""
    data = await file.read()
    return uploads.save(file.filename or "upload", data, x_session_id)


@router.post("/confirm-file")
async def confirm_file(body: FileNameBody, uploads: UploadRegistry = Depends(get_uploads)):
    """Mark an uploaded file as permanently referenced."""
    if not body.fileName:
        raise HTTPException(400, "fileName is required")
    uploads.confirm(body.fileName)
    return {"success": True}


@router.delete("/cleanup-session")
async def cleanup_session(
    x_session_id: str = Header("default"),
    uploads: UploadRegistry = Depends(get_uploads),
):
    """Delete every file still pending for the caller's session."""
    uploads.cleanup_session(x_session_id)
    return {"success": True}


@router.delete("/delete-file")
async def delete_file(body: FileNameBody, uploads: UploadRegistry = Depends(get_uploads)):
    """Delete an uploaded file outright."""
    try:
        uploads.delete(body.fileName)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"success": True}

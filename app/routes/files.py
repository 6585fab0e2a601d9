"""
SocialFeed Backend - Stored Image Route
=========================================

What:  GET /api/files/{path} serves images written by FileService.
How:   FileService.resolve() maps the URL path to a file under the storage
       root (rejecting traversal), then FileResponse streams it.

Caching: stored files are never rewritten (UUID names), so responses are
cacheable for a long time.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.schemas.common import ErrorResponse
from app.services.file_service import file_service

router = APIRouter(prefix="/api/files", tags=["Files"])


@router.get(
    "/{file_path:path}",
    response_class=FileResponse,
    responses={
        400: {"description": "Invalid file path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Download a stored post image",
)
async def get_file(file_path: str) -> FileResponse:
    path = file_service.resolve(file_path)
    return FileResponse(
        path=path,
        media_type=file_service.media_type_for(path),
        headers={"Cache-Control": "public, max-age=86400, immutable"},
    )

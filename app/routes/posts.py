"""
SocialFeed Backend - Post Route Handlers
==========================================

What:  The public feed plus every post mutation.
How:   Extracts path/body/form data, delegates to PostService with the verified
       caller id, returns the enriched post.
Who:   Called by the frontend feed, composer, like and comment widgets.

Route Inventory:
    GET    /api/posts                 public feed, newest first
    POST   /api/posts                 create (multipart: text, image)
    PATCH  /api/posts/{id}            owner edit (text, image)
    DELETE /api/posts/{id}            owner delete, returns the last state
    POST   /api/posts/{id}/like       toggle the caller's like
    POST   /api/posts/{id}/comment    append a comment

Request Flow (create):
    1. FastAPI parses the multipart form (text and image are both optional)
    2. The image, if any, goes through FileService.store_image → URL
    3. PostService.create_post persists the post
    4. If step 3 fails, the stored file is removed before the error propagates
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import CurrentAccount
from app.schemas.common import ErrorResponse
from app.schemas.post import CommentRequest, PostResponse, PostUpdateRequest
from app.services.file_service import file_service
from app.services.post_service import post_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["Posts"])

_AUTH_ERRORS = {401: {"description": "Missing or invalid token", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "Post not found", "model": ErrorResponse}}


@router.get(
    "",
    response_model=List[PostResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List the whole feed, newest first",
)
async def list_posts(db: AsyncSession = Depends(get_db_session)) -> List[PostResponse]:
    return await post_service.list_feed(db)


@router.post(
    "",
    status_code=201,
    response_model=PostResponse,
    responses={
        400: {"description": "Empty post, or invalid image type or size", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Create a post",
)
async def create_post(
    account: CurrentAccount,
    text: Optional[str] = Form(default=None, description="Post body"),
    image: Optional[UploadFile] = File(
        default=None,
        description="Optional image (PNG, JPG, JPEG or GIF)",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    """
    Create a post owned by the caller.

    Error responses (handled by global exception handlers):
        HTTP 400: neither text nor image, or the image fails validation
        HTTP 401: no valid bearer token
        HTTP 500: the image could not be written to storage
    """
    caller_id = account.id
    image_url = None

    if image is not None and image.filename:
        try:
            content = await image.read()
            logger.info(
                "Received post image: filename=%s, size=%d bytes",
                image.filename,
                len(content),
            )
            image_url = await file_service.store_image(
                filename=image.filename,
                content=content,
                content_type=image.content_type,
                content_length=image.size,
            )
        finally:
            await image.close()

    try:
        return await post_service.create_post(db, caller_id, text=text, image=image_url)
    except Exception:
        stored = file_service.path_for_url(image_url)
        if stored is not None:
            await file_service.cleanup_file(str(stored))
        raise


@router.patch(
    "/{post_id}",
    response_model=PostResponse,
    responses={
        400: {"description": "Edit would leave the post empty", "model": ErrorResponse},
        **_AUTH_ERRORS,
        **_NOT_FOUND,
    },
    summary="Edit one of your posts",
)
async def update_post(
    post_id: str,
    body: PostUpdateRequest,
    account: CurrentAccount,
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    """Only keys present in the body are applied; unknown keys are ignored."""
    return await post_service.update_post(
        db,
        account.id,
        post_id,
        body.model_dump(exclude_unset=True),
    )


@router.delete(
    "/{post_id}",
    response_model=PostResponse,
    responses={**_AUTH_ERRORS, **_NOT_FOUND},
    summary="Delete one of your posts",
)
async def delete_post(
    post_id: str,
    account: CurrentAccount,
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.delete_post(db, account.id, post_id)


@router.post(
    "/{post_id}/like",
    response_model=PostResponse,
    responses={**_AUTH_ERRORS, **_NOT_FOUND},
    summary="Like or un-like a post",
)
async def toggle_like(
    post_id: str,
    account: CurrentAccount,
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.toggle_like(db, account.id, post_id)


@router.post(
    "/{post_id}/comment",
    response_model=PostResponse,
    responses={**_AUTH_ERRORS, **_NOT_FOUND},
    summary="Comment on a post",
)
async def add_comment(
    post_id: str,
    body: CommentRequest,
    account: CurrentAccount,
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.add_comment(db, account.id, post_id, body.text)

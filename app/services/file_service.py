"""
SocialFeed Backend - Asset Storage Service
============================================

What:  Validates uploaded post images, stores them on disk, and hands back an
       opaque URL string for the post's `image` field.
How:   Extension, declared content type, size and magic-byte checks, then an
       async write to a date-organized directory with a UUID filename.
Who:   Called by the create-post route before PostService.create_post.
When:  Only when a multipart request carries an `image` part.

The feed never interprets the returned URL; swapping this service for a CDN
or object store only has to preserve `store_image(...) -> str`.

Attack vectors handled:
    - Path traversal: UUID filenames contain no user input; resolve() guards reads
    - Wrong file type: extension and declared content type must both be images
    - Renamed files: libmagic inspects the header bytes, so HTML saved as .png fails
    - Oversized uploads: size limit checked against header and actual bytes
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
import magic

from app.config import settings
from app.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Declared or detected content types accepted for post images, mapped to a canonical extension
ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/gif": ".gif",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif"}

MEDIA_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
}


class FileService:
    """
    Manages post image validation, storage, cleanup and lookup.

    Directory Structure:
        storage/
        └── 2024/
            └── 01/
                └── 15/
                    ├── a1b2c3d4-5678.jpg
                    └── e5f6g7h8-9012.png
    """

    def __init__(self, storage_root: Optional[str] = None, url_prefix: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
            url_prefix: Override the public URL prefix for stored images.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.url_prefix = (url_prefix or settings.asset_url_prefix).rstrip("/")
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_content_type(self, content_type: Optional[str]) -> None:
        """
        Check the content type declared by the multipart part.

        A missing content type is tolerated (some clients omit it); a declared
        non-image type is rejected.
        """
        if content_type is None:
            return
        media_type = content_type.split(";")[0].strip().lower()
        if media_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{media_type}' is not supported. "
                    f"The file must be a PNG, JPEG or GIF image."
                ),
                field="image",
                context={"content_type": media_type, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Validate file size against configured maximum.

        Args:
            content_length: Size reported by the client (may be None or inaccurate)
            actual_size: Actual byte count of the uploaded file

        Raises:
            ValidationError with human-readable size limit message
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="image",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

        if actual_size == 0:
            raise ValidationError(message="Uploaded image is empty", field="image")

    def validate_mime_type(self, content: bytes, filename: str) -> str:
        """
        Check the real file type from its leading bytes.

        The extension and the declared content type both come from the client;
        the header bytes do not.

        Returns: Detected MIME type (e.g. "image/jpeg").
        Raises:
            ValidationError:  the bytes are not a PNG, JPEG or GIF image.
            FileStorageError: libmagic could not inspect the content.
        """
        try:
            mime_type = magic.from_buffer(content, mime=True)
        except Exception as e:
            logger.error("MIME type detection failed for %s: %s", filename, str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a PNG, JPEG or GIF image."
                ),
                field="image",
                context={"detected_mime": mime_type, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )

        return mime_type

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """
        Generate a unique, date-organized file path for storage.

        Returns: Tuple of (absolute_path, relative_path_from_storage_root).
        """
        now = datetime.now(timezone.utc)
        date_dir = now.strftime("%Y/%m/%d")
        unique_name = f"{uuid.uuid4()}{extension}"

        relative_path = f"{date_dir}/{unique_name}"
        absolute_path = self.storage_root / relative_path

        return absolute_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """
        Write validated file content to disk.

        Returns: Tuple of (absolute_path, relative_path).
        Raises:  FileStorageError if directory creation or file write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("File stored: %s (%d bytes)", relative_path, len(content))
            return str(absolute_path), relative_path

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a stored file after a failed post creation.

        Best-effort: missing files are ignored and OS errors only logged.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    def url_for(self, relative_path: str) -> str:
        return f"{self.url_prefix}/{relative_path}"

    def path_for_url(self, image_url: Optional[str]) -> Optional[Path]:
        """Map an image URL produced by this service back to its file path, if it is ours."""
        if not image_url or not image_url.startswith(self.url_prefix + "/"):
            return None
        full_path = (self.storage_root / image_url[len(self.url_prefix) + 1:]).resolve()
        if not full_path.is_relative_to(self.storage_root):
            return None
        return full_path

    def resolve(self, relative_path: str) -> Path:
        """
        Map a relative storage path to an absolute file path for serving.

        Raises:
            ValidationError: the path escapes the storage root.
            NotFoundError:   no such file.
        """
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path")
        if not full_path.is_file():
            raise NotFoundError(resource="File", resource_id=relative_path)
        return full_path

    def media_type_for(self, path: Path) -> str:
        return MEDIA_TYPES.get(path.suffix.lower(), "application/octet-stream")

    async def store_image(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        content_length: Optional[int] = None,
    ) -> str:
        """
        Complete validation and storage pipeline for a post image.

        Validation order (cheapest first):
            1. Extension check
            2. Declared content type
            3. Size check
            4. Magic bytes
            5. Store file

        Returns:
            Public URL string for the stored image.
        """
        ext = self.validate_extension(filename)
        self.validate_content_type(content_type)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content, filename)

        _, relative_path = await self.store_file(content, ext)
        return self.url_for(relative_path)


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()

"""
SocialFeed Backend - File Service Unit Tests
===============================================

What:  Tests for FileService validation, storage, cleanup and lookup.
How:   Each test gets a FileService rooted in a temporary directory.

Test Strategy:
    ✅ Allowed extensions (.jpg, .jpeg, .png, .gif), case-insensitive
    ✅ Rejected extensions (.pdf, .exe, none)
    ✅ Declared content type must be an image (missing is tolerated)
    ✅ Size limits and empty uploads
    ✅ Header bytes must be an image whatever the name and declared type say
    ✅ store_image writes a date-organized UUID file and returns its URL
    ✅ resolve() refuses paths that escape the storage root
"""

from unittest.mock import patch

import pytest

from app.config import settings
from app.exceptions import FileStorageError, NotFoundError, ValidationError
from app.services.file_service import FileService


class TestFileValidation:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage, url_prefix="/api/files")

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["photo.jpg", "photo.jpeg", "photo.png", "anim.gif"])
    def test_allowed_extensions(self, filename):
        assert self.service.validate_extension(filename).startswith(".")

    def test_extension_is_case_insensitive(self):
        assert self.service.validate_extension("photo.JPG") == ".jpg"
        assert self.service.validate_extension("photo.Png") == ".png"

    @pytest.mark.parametrize("filename", ["document.pdf", "malware.exe", "noextension"])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(filename)

    # ── Content Type Validation ───────────────────────────────────────────

    def test_image_content_type_accepted(self):
        self.service.validate_content_type("image/png")
        self.service.validate_content_type("image/jpeg; charset=binary")

    def test_missing_content_type_tolerated(self):
        self.service.validate_content_type(None)

    def test_non_image_content_type_rejected(self):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_content_type("application/pdf")

    # ── Size Validation ───────────────────────────────────────────────────

    def test_size_within_limit(self):
        self.service.validate_size(None, 1000)

    def test_size_at_limit(self):
        self.service.validate_size(settings.max_file_size, settings.max_file_size)

    def test_actual_size_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(None, settings.max_file_size + 1)

    def test_reported_size_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(settings.max_file_size + 1, 10)

    def test_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0, 0)

    # ── Magic Byte Validation ─────────────────────────────────────────────

    def test_jpeg_bytes_detected(self, sample_image_bytes):
        assert self.service.validate_mime_type(sample_image_bytes, "photo.jpg") == "image/jpeg"

    def test_png_bytes_detected(self, sample_png_bytes):
        assert self.service.validate_mime_type(sample_png_bytes, "photo.png") == "image/png"

    def test_html_renamed_to_png_rejected(self, html_bytes):
        with pytest.raises(ValidationError, match="not supported") as exc_info:
            self.service.validate_mime_type(html_bytes, "evil.png")
        assert exc_info.value.context["detected_mime"] == "text/html"

    def test_detection_failure_is_storage_error(self, sample_image_bytes):
        with patch("app.services.file_service.magic.from_buffer", side_effect=OSError("no db")):
            with pytest.raises(FileStorageError, match="Could not verify file type"):
                self.service.validate_mime_type(sample_image_bytes, "photo.jpg")


class TestFileStorage:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage, url_prefix="/api/files")

    @pytest.mark.asyncio
    async def test_store_image_returns_url_for_stored_file(self, sample_image_bytes):
        url = await self.service.store_image(
            filename="holiday.JPG",
            content=sample_image_bytes,
            content_type="image/jpeg",
            content_length=len(sample_image_bytes),
        )

        assert url.startswith("/api/files/")
        assert url.endswith(".jpg")
        assert "holiday" not in url

        path = self.service.path_for_url(url)
        assert path is not None
        assert path.read_bytes() == sample_image_bytes
        assert self.service.resolve(url[len("/api/files/"):]) == path

    @pytest.mark.asyncio
    async def test_invalid_upload_writes_nothing(self, temp_storage):
        with pytest.raises(ValidationError):
            await self.service.store_image("notes.txt", b"hello", "text/plain", 5)
        assert list(self.service.storage_root.rglob("*.*")) == []

    @pytest.mark.asyncio
    async def test_disguised_html_upload_writes_nothing(self, html_bytes):
        with pytest.raises(ValidationError, match="text/html"):
            await self.service.store_image("evil.png", html_bytes, "image/png", len(html_bytes))
        assert list(self.service.storage_root.rglob("*.*")) == []

    def test_resolve_rejects_traversal(self):
        with pytest.raises(ValidationError, match="Invalid file path"):
            self.service.resolve("../../etc/passwd")

    def test_resolve_missing_file(self):
        with pytest.raises(NotFoundError, match="File not found"):
            self.service.resolve("2024/01/01/missing.png")

    def test_path_for_foreign_url_is_none(self):
        assert self.service.path_for_url("https://cdn.example.com/a.png") is None
        assert self.service.path_for_url("/api/files/../../outside.png") is None
        assert self.service.path_for_url(None) is None

    def test_media_type(self, tmp_path):
        assert self.service.media_type_for(tmp_path / "a.gif") == "image/gif"
        assert self.service.media_type_for(tmp_path / "a.JPEG") == "image/jpeg"

    # ── Cleanup ───────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_cleanup_file_removes_file(self, tmp_path):
        test_file = tmp_path / "test.jpg"
        test_file.write_bytes(b"test content")

        await self.service.cleanup_file(str(test_file))
        assert not test_file.exists()

    @pytest.mark.asyncio
    async def test_cleanup_file_nonexistent(self, tmp_path):
        await self.service.cleanup_file(str(tmp_path / "nonexistent.jpg"))

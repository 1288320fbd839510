"""Cover image storage for articles.

Covers are written to a flat upload directory under a random prefix and
served read-only at ``/uploads/<filename>``. Only the filename is stored on
the article row.
"""

import logging
import re
import uuid
from pathlib import Path

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from inkwell.core.config import Settings
from inkwell.core.errors import FileTooLarge, InvalidFileType

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif"})
ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif"})

COVER_URL_PREFIX = "/uploads"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(name: str) -> str:
    """Strip directories and replace anything outside ``[a-zA-Z0-9.-]``."""
    base = Path(name).name.lstrip(".")
    return _UNSAFE_CHARS.sub("_", base)[:100] or "cover"


def cover_url(filename: str | None) -> str | None:
    if not filename:
        return None
    return f"{COVER_URL_PREFIX}/{filename}"


class CoverStore:
    """Validates, stores and deletes uploaded cover images."""

    def __init__(self, directory: str | Path, max_bytes: int) -> None:
        self.directory = Path(directory)
        self.max_bytes = max_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> "CoverStore":
        return cls(settings.upload_dir, settings.max_cover_bytes)

    def validate_type(self, upload: UploadFile) -> None:
        """Both the extension and the declared content type must be an image."""
        extension = Path(upload.filename or "").suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise InvalidFileType()
        if (upload.content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
            raise InvalidFileType("Invalid file type detected")

    async def save(self, upload: UploadFile) -> str:
        """Store an upload and return its new filename.

        Raises InvalidFileType or FileTooLarge; nothing is written on failure.
        """
        self.validate_type(upload)
        content = await upload.read(self.max_bytes + 1)
        if len(content) > self.max_bytes:
            limit_mb = self.max_bytes / (1024 * 1024)
            raise FileTooLarge(f"Cover image must be {limit_mb:g}MB or smaller")

        filename = f"{uuid.uuid4().hex}-{sanitize_filename(upload.filename or '')}"
        self.directory.mkdir(parents=True, exist_ok=True)
        await run_in_threadpool(self.path_for(filename).write_bytes, content)
        logger.info(f"Stored cover {filename} ({len(content)} bytes)")
        return filename

    async def delete(self, filename: str | None) -> None:
        """Remove a stored cover. A missing file is not an error."""
        if not filename:
            return
        try:
            await run_in_threadpool(self.path_for(filename).unlink, True)
        except OSError as e:
            logger.warning(f"Could not delete cover {filename}: {e}")

    def path_for(self, filename: str) -> Path:
        return self.directory / Path(filename).name

"""
Local-disk storage for uploaded documents.

Files land under UPLOAD_DIR/<folder>/ and are referenced by URL
(STORAGE_URL_PREFIX/<folder>/<name>); the app mounts UPLOAD_DIR at that prefix.
"""

import re
import secrets
import time
from pathlib import Path
from typing import Iterable, Optional

import structlog
from fastapi import UploadFile

from classroom_api.core.config import settings
from classroom_api.core.exceptions import ValidationError

logger = structlog.get_logger(__name__)

ALLOWED_EXTENSIONS = ("pdf", "txt", "ppt", "pptx", "doc", "docx")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_filename(filename: str) -> str:
    name = Path(filename).name.strip().replace(" ", "_")
    return _UNSAFE_CHARS.sub("", name) or "upload"


class LocalFileStorage:
    def __init__(self, root: str, url_prefix: str, max_bytes: int) -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    def _check_extension(self, filename: Optional[str]) -> None:
        ext = Path(filename or "").suffix.lower().lstrip(".")
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                "Validation error",
                {"file": [f"The file must be a file of type: {', '.join(ALLOWED_EXTENSIONS)}."]},
            )

    async def save(self, upload: UploadFile, folder: str, prefix: str = "") -> str:
        """Validate and write the upload; returns its public URL."""
        self._check_extension(upload.filename)
        content = await upload.read()
        if not content:
            raise ValidationError("Validation error", {"file": ["The file must not be empty."]})
        if len(content) > self.max_bytes:
            raise ValidationError(
                "Validation error",
                {"file": [f"The file may not be greater than {self.max_bytes // 1024} kilobytes."]},
            )

        # Timestamp keeps names readable; the random part avoids same-second clashes.
        name = f"{int(time.time())}_{secrets.token_hex(4)}_{prefix}{_safe_filename(upload.filename)}"
        target_dir = self.root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / name).write_bytes(content)
        logger.info("file_stored", folder=folder, name=name, size=len(content))
        return f"{self.url_prefix}/{folder}/{name}"

    def path_for(self, url: str) -> Optional[Path]:
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        relative = url[len(self.url_prefix) + 1:]
        path = (self.root / relative).resolve()
        # Never follow a URL outside the storage root
        if self.root.resolve() not in path.parents:
            return None
        return path

    def delete(self, url: Optional[str]) -> None:
        if not url:
            return
        path = self.path_for(url)
        if path is None:
            logger.warning("file_delete_skipped", url=url)
            return
        path.unlink(missing_ok=True)

    def delete_many(self, urls: Iterable[Optional[str]]) -> None:
        for url in urls:
            self.delete(url)


def get_file_storage() -> LocalFileStorage:
    return LocalFileStorage(
        root=settings.upload_dir,
        url_prefix=settings.storage_url_prefix,
        max_bytes=settings.max_upload_size_mb * 1024 * 1024,
    )

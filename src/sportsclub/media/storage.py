"""
Local disk storage for uploaded media.

Files land in ``upload_dir`` as ``<field>-<epoch_ms><ext>`` and are served by
the static mount at ``/uploads``. Only images and videos are accepted: the
file extension must name one of the allowed formats and the declared
content type must be the matching image or video type.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import structlog
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from sportsclub.config import get_settings
from sportsclub.errors import InvalidUpload

logger = structlog.get_logger()

ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|gif|mp4|mov|avi")
ALLOWED_MEDIA_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "video/mp4",
        "video/quicktime",
        "video/x-msvideo",
    }
)
URL_PREFIX = "/uploads"


@dataclass(frozen=True)
class StoredMedia:
    filename: str
    url: str
    media_type: str
    size: int


class LocalMediaStorage:
    def __init__(
        self,
        root: str | Path,
        max_bytes: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.root = Path(root)
        self.max_bytes = max_bytes
        self._clock = clock

    def _checked_extension(self, upload: UploadFile) -> str:
        ext = Path(upload.filename or "").suffix.lower()
        media_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
        if not (ALLOWED_TYPES.search(ext) and media_type in ALLOWED_MEDIA_TYPES):
            raise InvalidUpload("Error: Images or Videos Only!")
        return ext

    def _target(self, field: str, ext: str) -> Path:
        stamp = int(self._clock() * 1000)
        path = self.root / f"{field}-{stamp}{ext}"
        while path.exists():
            stamp += 1
            path = self.root / f"{field}-{stamp}{ext}"
        return path

    async def save(self, upload: UploadFile, field: str) -> StoredMedia:
        """
        Validate and write an upload.

        Raises:
            InvalidUpload: Wrong file type or larger than ``max_bytes``.
        """
        ext = self._checked_extension(upload)
        contents = await upload.read(self.max_bytes + 1)
        if len(contents) > self.max_bytes:
            raise InvalidUpload("File too large")

        self.root.mkdir(parents=True, exist_ok=True)
        path = self._target(field, ext)
        await run_in_threadpool(path.write_bytes, contents)
        logger.info("media_stored", filename=path.name, size=len(contents), media_type=upload.content_type)
        return StoredMedia(
            filename=path.name,
            url=f"{URL_PREFIX}/{path.name}",
            media_type=upload.content_type or "",
            size=len(contents),
        )


def get_media_storage() -> LocalMediaStorage:
    """Media storage from settings (FastAPI dependency)."""
    settings = get_settings()
    return LocalMediaStorage(settings.upload_dir, settings.upload_max_bytes)

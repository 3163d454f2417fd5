"""Object storage for uploaded post images."""
from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path

from snapgram.core.settings import settings

__all__ = ["LocalObjectStorage", "ObjectStorage", "StorageError", "get_storage"]

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


class StorageError(RuntimeError):
    """Raised when an object cannot be written or removed."""


class ObjectStorage(ABC):
    """Minimal put/delete interface for public image objects."""

    @abstractmethod
    def put(self, owner_id: int, data: bytes, content_type: str) -> str:
        """Store ``data`` and return its public URL."""

    @abstractmethod
    def delete(self, url: str) -> None:
        """Remove the object behind ``url``; unknown URLs are ignored."""


class LocalObjectStorage(ObjectStorage):
    """Store objects as files below a media root served at ``base_url``."""

    def __init__(self, root: str | Path, base_url: str) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _key_for(self, owner_id: int, content_type: str) -> str:
        extension = _EXTENSIONS.get(content_type, "bin")
        return f"{owner_id}/{uuid.uuid4().hex}.{extension}"

    def _path_for(self, url: str) -> Path | None:
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            return None
        key = url[len(prefix):]
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            return None
        return path

    def put(self, owner_id: int, data: bytes, content_type: str) -> str:
        key = self._key_for(owner_id, content_type)
        path = self.root / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to write object {key}") from exc
        logger.debug("Stored %d bytes at %s", len(data), key)
        return f"{self.base_url}/{key}"

    def delete(self, url: str) -> None:
        path = self._path_for(url)
        if path is None:
            logger.debug("Ignoring delete for foreign URL %s", url)
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete object at {url}") from exc


def get_storage() -> ObjectStorage:
    """Return the storage backend configured by the settings."""
    return LocalObjectStorage(settings.media_root, settings.media_base_url)

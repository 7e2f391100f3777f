"""Local filesystem object storage, served by the app under ``/storage``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from voicelab.errors import StorageError

from .base import ObjectStorage, split_bucket


logger = logging.getLogger("voicelab.storage")


class LocalObjectStorage(ObjectStorage):
    """Buckets are directories below `root`, created on first write."""

    def __init__(self, root: Union[str, Path], base_url: str = "/storage"):
        self.root = Path(root).expanduser().resolve()
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _full_path(self, path: str) -> Path:
        bucket, key = split_bucket(path)
        full = (self.root / bucket / key).resolve()
        if self.root not in full.parents:
            raise StorageError(f"Object path escapes storage root: {path!r}")
        return full

    def put(self, data: bytes, path: str, content_type: Optional[str] = None) -> str:
        full = self._full_path(path)
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
            full.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to write {path}: {exc}") from exc
        logger.info("Stored %s (%d bytes)", path, len(data))
        return self.get_url(path)

    def get(self, path: str) -> bytes:
        full = self._full_path(path)
        if not full.is_file():
            raise StorageError(f"Object not found: {path}")
        try:
            return full.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read {path}: {exc}") from exc

    def delete(self, path: str) -> bool:
        full = self._full_path(path)
        if not full.exists():
            return False
        try:
            full.unlink()
        except OSError as exc:
            raise StorageError(f"Failed to delete {path}: {exc}") from exc
        return True

    def exists(self, path: str) -> bool:
        return self._full_path(path).is_file()

    def get_url(self, path: str) -> str:
        bucket, key = split_bucket(path)
        return f"{self.base_url}/{bucket}/{key}"

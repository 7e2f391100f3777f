"""Abstract object storage interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Tuple

from voicelab.errors import StorageError


def split_bucket(path: str) -> Tuple[str, str]:
    """Split ``bucket/key/...`` into ``("bucket", "key/...")``."""
    clean = (path or "").strip().lstrip("/")
    bucket, _, key = clean.partition("/")
    if not bucket or not key:
        raise StorageError(f"Object path must look like 'bucket/name', got {path!r}")
    return bucket, key


class ObjectStorage(ABC):
    """Byte storage addressed by ``bucket/key`` paths."""

    @abstractmethod
    def put(self, data: bytes, path: str, content_type: Optional[str] = None) -> str:
        """Store bytes and return a URL the browser can load."""

    @abstractmethod
    def get(self, path: str) -> bytes:
        """Return stored bytes; StorageError if missing or unreadable."""

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Remove an object; False when it did not exist."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def get_url(self, path: str) -> str:
        ...

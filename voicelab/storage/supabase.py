"""
Supabase Storage backend over its REST API.

Buckets are created as public on first use so stored audio can be played
straight from the returned URL.
"""

from __future__ import annotations

import logging
from typing import Optional, Set

import requests

from voicelab.errors import StorageError

from .base import ObjectStorage, split_bucket


logger = logging.getLogger("voicelab.storage.supabase")


class SupabaseObjectStorage(ObjectStorage):
    def __init__(
        self,
        url: str,
        service_key: str,
        timeout_s: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        if not url or not service_key:
            raise StorageError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        self.base_url = url.rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
            }
        )
        self._known_buckets: Set[str] = set()

    def _object_url(self, bucket: str, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/{bucket}/{key}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout_s, **kwargs)
        except requests.RequestException as exc:
            raise StorageError(f"Supabase storage request failed: {exc}") from exc

    def ensure_bucket(self, bucket: str) -> None:
        """Create a public bucket unless it is already known to exist."""
        if bucket in self._known_buckets:
            return
        resp = self._request("GET", f"{self.base_url}/storage/v1/bucket/{bucket}")
        if resp.status_code != 200:
            resp = self._request(
                "POST",
                f"{self.base_url}/storage/v1/bucket",
                json={"id": bucket, "name": bucket, "public": True},
            )
            if resp.status_code >= 400 and "already exists" not in resp.text.lower():
                logger.error("Bucket creation failed for %s: %s", bucket, resp.text)
                raise StorageError(f"Could not create bucket {bucket}: HTTP {resp.status_code}")
            logger.info("Created storage bucket %s", bucket)
        self._known_buckets.add(bucket)

    def put(self, data: bytes, path: str, content_type: Optional[str] = None) -> str:
        bucket, key = split_bucket(path)
        self.ensure_bucket(bucket)
        resp = self._request(
            "POST",
            self._object_url(bucket, key),
            data=data,
            headers={
                "Content-Type": content_type or "application/octet-stream",
                "x-upsert": "true",
                "cache-control": "3600",
            },
        )
        if resp.status_code >= 400:
            logger.error("Upload of %s failed: %s", path, resp.text)
            raise StorageError(f"Upload of {path} failed: HTTP {resp.status_code}")
        return self.get_url(path)

    def get(self, path: str) -> bytes:
        bucket, key = split_bucket(path)
        resp = self._request("GET", self._object_url(bucket, key))
        if resp.status_code >= 400:
            raise StorageError(f"Download of {path} failed: HTTP {resp.status_code}")
        return resp.content

    def delete(self, path: str) -> bool:
        bucket, key = split_bucket(path)
        resp = self._request("DELETE", self._object_url(bucket, key))
        if resp.status_code in (400, 404):
            return False
        if resp.status_code >= 400:
            raise StorageError(f"Delete of {path} failed: HTTP {resp.status_code}")
        return True

    def exists(self, path: str) -> bool:
        bucket, key = split_bucket(path)
        resp = self._request("HEAD", self._object_url(bucket, key))
        return resp.status_code == 200

    def get_url(self, path: str) -> str:
        bucket, key = split_bucket(path)
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{key}"

"""
Binary object storage for uploaded images and synthesized audio.

Keys are scoped by owning user id (`{user_id}/...`) so objects of different
users can never collide.
"""

import asyncio
import os
import tempfile
import time
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import httpx

from heritage.errors import StorageError, ValidationError
from heritage.utils.logger import get_logger

logger = get_logger(__name__)


def scoped_key(user_id: str, extension: str) -> str:
    """
    Build a collision-resistant object key namespaced by the owning user.

    Args:
        user_id: Owner of the object
        extension: File extension without the dot ("mp3", "png")

    Returns:
        str: e.g. "user-1/1700000000000-1a2b3c4d.mp3"
    """
    if not user_id or "/" in user_id or user_id in (".", ".."):
        raise ValidationError(f"Invalid user id for object key: {user_id!r}")
    stamp = int(time.time() * 1000)
    return f"{user_id}/{stamp}-{uuid.uuid4().hex[:8]}.{extension.lstrip('.')}"


class ObjectStore(ABC):
    """Contract of the binary store collaborator."""

    @abstractmethod
    async def put(self, data: bytes, key: str, content_type: str) -> str:
        """
        Persist bytes under a key and return its public reference.

        Raises:
            StorageError: If the write fails
        """

    @abstractmethod
    async def get(self, reference: str) -> bytes:
        """
        Read the bytes behind a reference returned by `put` (or an http(s) URL).

        Raises:
            StorageError: If the object cannot be read
        """


class LocalObjectStore(ObjectStore):
    """
    Stores objects on the local filesystem under `root/bucket/`.

    Public references are `{public_base_url}/{bucket}/{key}`; the API serves
    that prefix statically.
    """

    def __init__(
        self,
        root: str,
        bucket: str,
        public_base_url: str,
        fetch_timeout_sec: float = 30.0
    ) -> None:
        self.bucket = bucket
        self._base_dir = (Path(root) / bucket).resolve()
        self._public_prefix = f"{public_base_url.rstrip('/')}/{bucket}/"
        self._fetch_timeout_sec = fetch_timeout_sec

    def _path_for(self, key: str) -> Path:
        """Resolve a key inside the bucket directory, rejecting traversal."""
        if not key or key.startswith("/"):
            raise StorageError(f"Invalid object key: {key!r}")
        path = (self._base_dir / key).resolve()
        try:
            path.relative_to(self._base_dir)
        except ValueError:
            logger.warning("Path traversal attempt blocked", key=key)
            raise StorageError(f"Invalid object key: {key!r}")
        return path

    def public_url(self, key: str) -> str:
        return f"{self._public_prefix}{key}"

    def key_for(self, reference: str) -> Optional[str]:
        """Return the key of a reference produced by this store, else None."""
        if reference.startswith(self._public_prefix):
            return reference[len(self._public_prefix):]
        return None

    async def put(self, data: bytes, key: str, content_type: str) -> str:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write_atomic, path, data)
        except OSError as e:
            logger.error("Object write failed", bucket=self.bucket, key=key, error=str(e))
            raise StorageError(f"Failed to store object '{key}'") from e

        logger.info("Object stored", bucket=self.bucket, key=key,
                    size_bytes=len(data), content_type=content_type)
        return self.public_url(key)

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        # Readers never observe a half-written object
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), suffix=".part")
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def get(self, reference: str) -> bytes:
        key = self.key_for(reference)
        if key is not None:
            return await self._read_local(key)
        if reference.startswith(("http://", "https://")):
            return await self._fetch_remote(reference)
        return await self._read_local(reference)

    async def _read_local(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.error("Object read failed", bucket=self.bucket, key=key, error=str(e))
            raise StorageError(f"Failed to read object '{key}'") from e

    async def _fetch_remote(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self._fetch_timeout_sec,
                                         follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            logger.error("Remote object fetch failed", error=str(e))
            raise StorageError("Failed to fetch image") from e

"""Tests for the local object store and object key scoping."""

import re

import pytest

from heritage.errors import StorageError, ValidationError
from heritage.storage.object_store import LocalObjectStore, scoped_key

PUBLIC_URL = "http://localhost:8000/storage"


@pytest.fixture
def local_store(tmp_path):
    return LocalObjectStore(root=str(tmp_path), bucket="audio-files", public_base_url=PUBLIC_URL)


class TestScopedKey:

    def test_format(self):
        key = scoped_key("user-1", "mp3")
        assert re.fullmatch(r"user-1/\d{13}-[0-9a-f]{8}\.mp3", key)

    def test_keys_are_unique(self):
        assert scoped_key("user-1", "mp3") != scoped_key("user-1", "mp3")

    def test_leading_dot_stripped(self):
        assert scoped_key("user-1", ".png").endswith(".png")

    @pytest.mark.parametrize("user_id", ["", "a/b", ".", ".."])
    def test_rejects_unsafe_user_ids(self, user_id):
        with pytest.raises(ValidationError):
            scoped_key(user_id, "mp3")


class TestLocalObjectStore:

    @pytest.mark.asyncio
    async def test_put_writes_file_and_returns_public_url(self, local_store, tmp_path):
        url = await local_store.put(b"ID3audio", "user-1/1-abcd1234.mp3", "audio/mpeg")

        assert url == f"{PUBLIC_URL}/audio-files/user-1/1-abcd1234.mp3"
        assert (tmp_path / "audio-files" / "user-1" / "1-abcd1234.mp3").read_bytes() == b"ID3audio"

    @pytest.mark.asyncio
    async def test_get_by_public_reference(self, local_store):
        url = await local_store.put(b"bytes", "user-1/a.png", "image/png")

        assert await local_store.get(url) == b"bytes"

    @pytest.mark.asyncio
    async def test_get_by_key(self, local_store):
        await local_store.put(b"bytes", "user-1/a.png", "image/png")

        assert await local_store.get("user-1/a.png") == b"bytes"

    @pytest.mark.asyncio
    async def test_overwrite_replaces_content(self, local_store):
        await local_store.put(b"old", "user-1/a.mp3", "audio/mpeg")
        await local_store.put(b"new", "user-1/a.mp3", "audio/mpeg")

        assert await local_store.get("user-1/a.mp3") == b"new"

    @pytest.mark.asyncio
    async def test_no_partial_files_left(self, local_store, tmp_path):
        await local_store.put(b"data", "user-1/a.mp3", "audio/mpeg")

        leftovers = list((tmp_path / "audio-files" / "user-1").glob("*.part"))
        assert leftovers == []

    @pytest.mark.asyncio
    async def test_missing_object_is_storage_error(self, local_store):
        with pytest.raises(StorageError):
            await local_store.get(f"{PUBLIC_URL}/audio-files/user-1/missing.mp3")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["../escape.mp3", "user-1/../../escape.mp3", "/etc/passwd", ""])
    async def test_rejects_traversal(self, local_store, key):
        with pytest.raises(StorageError):
            await local_store.put(b"x", key, "audio/mpeg")

    def test_key_for_foreign_reference(self, local_store):
        assert local_store.key_for("http://elsewhere.test/audio-files/a.mp3") is None
        assert local_store.key_for(f"{PUBLIC_URL}/audio-files/user-1/a.mp3") == "user-1/a.mp3"

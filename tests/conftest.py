"""Shared fixtures for pipeline, store and API tests."""

import pytest

from fakes import InMemoryObjectStore, InMemoryResultStore


@pytest.fixture
def store():
    return InMemoryResultStore()


@pytest.fixture
def image_store():
    return InMemoryObjectStore(base_url="http://storage.test/heritage-images")


@pytest.fixture
def audio_store():
    return InMemoryObjectStore()


@pytest.fixture
def upload(store, image_store):
    """An upload owned by OWNER whose image bytes are in the image store."""
    record = store.add_upload()
    image_store.objects[record.file_path] = b"\x89PNG fake image"
    return record

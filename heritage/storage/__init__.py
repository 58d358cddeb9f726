"""Binary object storage for images and audio."""

from heritage.storage.object_store import LocalObjectStore, ObjectStore, scoped_key

__all__ = [
    'ObjectStore',
    'LocalObjectStore',
    'scoped_key',
]

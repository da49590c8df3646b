"""Blob store access: content upload and download."""

from store.backend import BlobBackend
from store.client import StoreClient
from store.estuary import EstuaryBlobStore
from store.memory import InMemoryBlobStore

__all__ = [
    "BlobBackend",
    "StoreClient",
    "EstuaryBlobStore",
    "InMemoryBlobStore",
]

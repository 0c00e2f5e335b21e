from __future__ import annotations

from .backends import DiskStorageBackend, MemoryStorageBackend
from .document_store import LocalDocumentStore
from .errors import StorageError, StorageQuotaExceededError, StorageUnavailableError
from .factory import create_document_store
from .interfaces import DocumentStore, StorageBackend
from .repositories import AsyncDocumentStore
from .signals import ChangeBus, StorageEvent
from .typed import TypedDocument

__all__ = [
    "DocumentStore",
    "StorageBackend",
    "LocalDocumentStore",
    "AsyncDocumentStore",
    "MemoryStorageBackend",
    "DiskStorageBackend",
    "ChangeBus",
    "StorageEvent",
    "TypedDocument",
    "StorageError",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
    "create_document_store",
]

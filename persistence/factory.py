from __future__ import annotations

import logging

from settings import Settings, get_settings

from . import paths
from .backends import DiskStorageBackend, MemoryStorageBackend
from .document_store import LocalDocumentStore
from .interfaces import StorageBackend

logger = logging.getLogger(__name__)


def create_backend(settings: Settings) -> StorageBackend:
    if settings.store_backend == "memory":
        return MemoryStorageBackend(quota_bytes=settings.store_quota_bytes)
    return DiskStorageBackend(paths.documents_dir(paths.data_dir()))


def create_document_store(
    settings: Settings | None = None,
    *,
    backend: StorageBackend | None = None,
) -> LocalDocumentStore:
    """
    Build a store from settings. Pass backend to attach another "tab" to an
    existing substrate.
    """
    settings = settings or get_settings()
    backend = backend or create_backend(settings)
    logger.debug("STORE: backend=%s namespace=%s", type(backend).__name__, settings.store_namespace)
    return LocalDocumentStore(
        backend,
        namespace=settings.store_namespace,
        app_name=settings.app_name,
        backups_dir=paths.backups_dir(paths.data_dir()),
    )

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from .document_store import LocalDocumentStore

T = TypeVar("T")


class AsyncDocumentStore:
    """
    Async wrapper around LocalDocumentStore.
    Uses asyncio.to_thread to avoid blocking the event loop on file I/O.
    """

    def __init__(self, store: LocalDocumentStore) -> None:
        self._store = store

    @property
    def store(self) -> LocalDocumentStore:
        return self._store

    async def load(self, key: str, default: T) -> T:
        return await asyncio.to_thread(self._store.load, key, default)

    async def save(self, key: str, value: Any) -> bool:
        return await asyncio.to_thread(self._store.save, key, value)

    async def remove(self, key: str) -> bool:
        return await asyncio.to_thread(self._store.remove, key)

    async def stored_keys(self) -> list[str]:
        return await asyncio.to_thread(self._store.stored_keys)

    async def has_stored_data(self) -> bool:
        return await asyncio.to_thread(self._store.has_stored_data)

    async def export_json(self) -> tuple[str, str] | None:
        return await asyncio.to_thread(self._store.export_json)

    async def export_all_data(self, directory: Path | None = None) -> Path | None:
        return await asyncio.to_thread(self._store.export_all_data, directory)

    async def import_data(self, json_text: str) -> bool:
        return await asyncio.to_thread(self._store.import_data, json_text)

    async def get_last_backup_time(self) -> datetime | None:
        return await asyncio.to_thread(self._store.get_last_backup_time)

    async def cleanup_old_data(self) -> list[str]:
        return await asyncio.to_thread(self._store.cleanup_old_data)

from __future__ import annotations

import logging
import threading
from pathlib import Path
from urllib.parse import quote, unquote

from json_store import atomic_write_text, read_text

from .errors import StorageQuotaExceededError, StorageUnavailableError
from .interfaces import StorageBackend
from .signals import ChangeBus

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


class KeyLockRegistry:
    """
    One lock per (directory, storage key). Shared by every DiskStorageBackend
    in the process, so two backends opened on the same directory serialize
    their writes to the same key.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], threading.Lock] = {}

    def lock_for(self, directory: Path, key: str) -> threading.Lock:
        slot = (str(directory.resolve()), key)
        with self._guard:
            lock = self._locks.get(slot)
            if lock is None:
                lock = threading.Lock()
                self._locks[slot] = lock
            return lock


DISK_KEY_LOCKS = KeyLockRegistry()


def _utf8_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class MemoryStorageBackend(StorageBackend):
    """
    Process-local substrate. Used by tests and by STORE_BACKEND=memory.

    quota_bytes caps the UTF-8 size of all keys and values, like a browser storage quota.
    """

    def __init__(self, quota_bytes: int | None = None):
        self.bus = ChangeBus()
        self._quota = quota_bytes
        self._lock = threading.Lock()
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            if self._quota is not None:
                used = sum(_utf8_size(k, v) for k, v in self._items.items() if k != key)
                required = used + _utf8_size(key, value)
                if required > self._quota:
                    raise StorageQuotaExceededError(key, required, self._quota)
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._items.keys())


class DiskStorageBackend(StorageBackend):
    """
    Stores each key as its own file inside a directory:

    - <directory>/<percent-encoded key>.json

    Writes are atomic and serialized per path.
    """

    def __init__(self, directory: Path):
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        self.bus = ChangeBus()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        return self._directory / f"{quote(key, safe='')}{_SUFFIX}"

    def get_item(self, key: str) -> str | None:
        path = self._path_for(key)
        with DISK_KEY_LOCKS.lock_for(self._directory, key):
            try:
                return read_text(path)
            except (OSError, UnicodeDecodeError) as e:
                raise StorageUnavailableError(f"cannot read {path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        with DISK_KEY_LOCKS.lock_for(self._directory, key):
            try:
                atomic_write_text(path, value)
            except OSError as e:
                raise StorageUnavailableError(f"cannot write {path}: {e}") from e

    def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        with DISK_KEY_LOCKS.lock_for(self._directory, key):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise StorageUnavailableError(f"cannot remove {path}: {e}") from e

    def keys(self) -> list[str]:
        try:
            names = [p.name for p in self._directory.iterdir() if p.is_file()]
        except OSError as e:
            raise StorageUnavailableError(f"cannot list {self._directory}: {e}") from e
        return [unquote(n[: -len(_SUFFIX)]) for n in names if n.endswith(_SUFFIX)]

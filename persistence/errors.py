from __future__ import annotations


class StorageError(Exception):
    """Base class for failures of the underlying storage substrate."""


class StorageQuotaExceededError(StorageError):
    """A write would exceed the substrate's size quota; nothing was written."""

    def __init__(self, key: str, required: int, quota: int):
        super().__init__(f"writing {key!r} needs {required} bytes, quota is {quota}")
        self.key = key
        self.required = required
        self.quota = quota


class StorageUnavailableError(StorageError):
    """The substrate could not be read or written (I/O error, permissions)."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar

from json_store import atomic_write_text

from .bundle import BUNDLE_META_KEY, BundleError, build_bundle, split_bundle
from .errors import StorageError
from .interfaces import DocumentStore, StorageBackend
from .signals import StorageEvent

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Documents the dashboard features read and write.
DEFAULT_DOCUMENT_KEYS: tuple[str, ...] = (
    "clients",
    "invoices",
    "tasks",
    "projects",
    "contracts",
    "strikes",
    "displayTitles",
    "calendar-events",
    "news-items",
    "roles",
    "orgHierarchy",
    "monthlyRevenues",
    "team-members",
    "team-visibility-states",
)

# Entities now served by the REST API; their local copies are stale.
LEGACY_DOCUMENT_KEYS: tuple[str, ...] = ("users", "user", "notifications")

BACKUP_TIME_KEY = "lastBackupTime"

_EMPTY_VALUES: tuple[Any, ...] = (None, [], {}, "")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_lossless(value: Any) -> None:
    # json.dumps coerces these silently; load would not return what was saved.
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError(f"object keys must be str, got {type(k).__name__}")
            _check_lossless(v)
    elif isinstance(value, tuple):
        raise TypeError("tuples are not JSON documents; use a list")
    elif isinstance(value, list):
        for item in value:
            _check_lossless(item)


def _serialize(value: Any) -> str:
    # dumps first: it reports circular references before the walk would recurse forever.
    payload = json.dumps(value, allow_nan=False, separators=(",", ":"))
    _check_lossless(value)
    return payload


def validate_document_key(key: str) -> str:
    if not isinstance(key, str) or not key.strip():
        raise ValueError(f"document key must be a non-empty string, got {key!r}")
    if key == BACKUP_TIME_KEY:
        raise ValueError(f"{BACKUP_TIME_KEY!r} is reserved for backup metadata")
    if key == BUNDLE_META_KEY:
        raise ValueError(f"{BUNDLE_META_KEY!r} is reserved for bundle metadata")
    return key


class LocalDocumentStore(DocumentStore):
    """
    Namespaced JSON document store on top of a StorageBackend.

    Every document key is stored as "<namespace>-<key>". Expected failures
    (missing or corrupt documents, unserializable values, quota and I/O errors)
    are logged and turned into defaults / False; only programming errors such
    as an empty key raise.

    Several stores may share one backend; each behaves like a browser tab and
    is notified of the other stores' writes, never of its own.
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        namespace: str = "ascend-media",
        app_name: str | None = None,
        known_keys: Iterable[str] = DEFAULT_DOCUMENT_KEYS,
        legacy_keys: Iterable[str] = LEGACY_DOCUMENT_KEYS,
        backups_dir: Path | None = None,
        clock: Callable[[], datetime] | None = None,
        store_id: str | None = None,
    ):
        if not namespace:
            raise ValueError("namespace must be a non-empty string")
        self._backend = backend
        self._prefix = f"{namespace}-"
        self._app_name = app_name or namespace
        self._known_keys = tuple(known_keys)
        self._legacy_keys = tuple(legacy_keys)
        self._backups_dir = backups_dir
        self._clock = clock or _utcnow
        self.id = store_id or uuid.uuid4().hex

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def known_keys(self) -> tuple[str, ...]:
        return self._known_keys

    # ------------------------------------------------------------------
    # key helpers
    # ------------------------------------------------------------------
    def _storage_key(self, key: str) -> str:
        validate_document_key(key)
        return self._prefix + key

    def _document_keys(self) -> list[str]:
        keys = []
        for raw in self._backend.keys():
            if not raw.startswith(self._prefix):
                continue
            key = raw[len(self._prefix):]
            if key.strip() and key not in (BACKUP_TIME_KEY, BUNDLE_META_KEY):
                keys.append(key)
        return sorted(keys)

    def _publish(self, key: str | None) -> None:
        self._backend.bus.publish(StorageEvent(key=key, origin=self.id))

    # ------------------------------------------------------------------
    # single documents
    # ------------------------------------------------------------------
    def load(self, key: str, default: T) -> T:
        storage_key = self._storage_key(key)
        try:
            raw = self._backend.get_item(storage_key)
        except StorageError as e:
            logger.warning("LOAD %s: storage unavailable: %r", key, e)
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("LOAD %s: corrupt document, using default: %r", key, e)
            return default

    def save(self, key: str, value: Any) -> bool:
        """
        Full overwrite. False, with the prior value kept, when value would not
        load back equal (unserializable, NaN, non-str keys, tuples) or the write fails.
        """
        storage_key = self._storage_key(key)
        try:
            payload = _serialize(value)
        except (TypeError, ValueError) as e:
            logger.warning("SAVE %s: value is not JSON-serializable: %r", key, e)
            return False
        try:
            self._backend.set_item(storage_key, payload)
        except StorageError as e:
            logger.warning("SAVE %s: write failed: %r", key, e)
            return False
        self._publish(key)
        return True

    def remove(self, key: str) -> bool:
        storage_key = self._storage_key(key)
        try:
            self._backend.remove_item(storage_key)
        except StorageError as e:
            logger.warning("REMOVE %s: failed: %r", key, e)
            return False
        self._publish(key)
        return True

    def clear_all(self) -> int:
        """Remove every key in this namespace, backup metadata included."""
        try:
            targets = [k for k in self._backend.keys() if k.startswith(self._prefix)]
            for storage_key in targets:
                self._backend.remove_item(storage_key)
        except StorageError as e:
            logger.warning("CLEAR: failed: %r", e)
            return 0
        if targets:
            self._publish(None)
        logger.info("CLEAR: removed %d key(s)", len(targets))
        return len(targets)

    def stored_keys(self) -> list[str]:
        try:
            return self._document_keys()
        except StorageError as e:
            logger.warning("KEYS: storage unavailable: %r", e)
            return []

    def has_stored_data(self) -> bool:
        """True when any recognized document holds non-empty content."""
        missing = object()
        for key in self._known_keys:
            value = self.load(key, missing)
            if value is missing:
                continue
            if value not in _EMPTY_VALUES:
                return True
        return False

    # ------------------------------------------------------------------
    # export / import
    # ------------------------------------------------------------------
    def export_bundle(self, *, exported_at: datetime | None = None) -> dict[str, Any]:
        """Snapshot of every stored document plus bundle metadata. Read-only."""
        documents: dict[str, Any] = {}
        missing = object()
        for key in self.stored_keys():
            value = self.load(key, missing)
            if value is missing:
                logger.warning("EXPORT: skipping unreadable document %s", key)
                continue
            documents[key] = value
        return build_bundle(documents, app=self._app_name, exported_at=exported_at or self._clock())

    def backup_filename(self, when: datetime | None = None) -> str:
        stamp = (when or self._clock()).date().isoformat()
        return f"{self._app_name}-backup-{stamp}.json"

    def export_json(self) -> tuple[str, str] | None:
        """
        Serialize the full dataset and record the backup time.

        Returns (filename, json_text), or None on failure.
        """
        now = self._clock()
        text = self._bundle_text(now)
        if text is None:
            return None
        self._record_backup_time(now)
        return self.backup_filename(now), text

    def _bundle_text(self, now: datetime) -> str | None:
        try:
            return json.dumps(self.export_bundle(exported_at=now), indent=2, allow_nan=False)
        except (TypeError, ValueError) as e:
            logger.warning("EXPORT: serialization failed: %r", e)
            return None

    def export_all_data(self, directory: Path | None = None) -> Path | None:
        """
        Write the backup file "<app>-backup-<YYYY-MM-DD>.json" and record the backup time.

        Returns the written path, or None on failure.
        """
        target_dir = directory or self._backups_dir
        if target_dir is None:
            raise ValueError("no backup directory configured")

        now = self._clock()
        text = self._bundle_text(now)
        if text is None:
            return None

        path = Path(target_dir) / self.backup_filename(now)
        try:
            atomic_write_text(path, text + "\n")
        except OSError as e:
            logger.warning("EXPORT: failed to write %s: %r", path, e)
            return None

        self._record_backup_time(now)
        logger.info("EXPORT: wrote backup %s", path)
        return path

    def _record_backup_time(self, when: datetime) -> None:
        try:
            self._backend.set_item(self._prefix + BACKUP_TIME_KEY, when.isoformat())
        except StorageError as e:
            logger.warning("EXPORT: failed to record backup time: %r", e)

    def import_data(self, json_text: str) -> bool:
        """
        Replace documents with the contents of an exported bundle.

        All-or-nothing: the bundle is validated and every value serialized
        before the first write, and a failing write rolls back the keys
        already written. Keys missing from the bundle are left untouched.
        """
        try:
            parsed = json.loads(json_text)
            _, documents = split_bundle(parsed)
        except (ValueError, BundleError) as e:
            logger.warning("IMPORT: rejected bundle: %r", e)
            return False

        if BACKUP_TIME_KEY in documents:
            logger.warning("IMPORT: rejected bundle: reserved key %s", BACKUP_TIME_KEY)
            return False

        try:
            payloads = {self._prefix + key: _serialize(value) for key, value in documents.items()}
        except (TypeError, ValueError) as e:
            logger.warning("IMPORT: rejected bundle: %r", e)
            return False

        previous: dict[str, str | None] = {}
        try:
            for storage_key, payload in payloads.items():
                previous[storage_key] = self._backend.get_item(storage_key)
                self._backend.set_item(storage_key, payload)
        except StorageError as e:
            logger.warning("IMPORT: write failed, rolling back %d key(s): %r", len(previous), e)
            self._rollback(previous)
            return False

        self._publish(None)
        logger.info("IMPORT: restored %d document(s)", len(payloads))
        return True

    def import_file(self, path: Path) -> bool:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("IMPORT: cannot read %s: %r", path, e)
            return False
        return self.import_data(text)

    def _rollback(self, previous: dict[str, str | None]) -> None:
        for storage_key, raw in previous.items():
            try:
                if raw is None:
                    self._backend.remove_item(storage_key)
                else:
                    self._backend.set_item(storage_key, raw)
            except StorageError as e:
                logger.error("IMPORT: rollback of %s failed: %r", storage_key, e)

    def get_last_backup_time(self) -> datetime | None:
        try:
            raw = self._backend.get_item(self._prefix + BACKUP_TIME_KEY)
        except StorageError as e:
            logger.warning("BACKUP TIME: storage unavailable: %r", e)
            return None
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw.strip())
        except ValueError:
            logger.warning("BACKUP TIME: unparseable value %r", raw)
            return None

    # ------------------------------------------------------------------
    # startup migration
    # ------------------------------------------------------------------
    def cleanup_old_data(self) -> list[str]:
        """Drop local copies of documents that moved to the server. Idempotent."""
        removed = []
        for key in self._legacy_keys:
            storage_key = self._storage_key(key)
            try:
                present = self._backend.get_item(storage_key) is not None
            except StorageError as e:
                logger.warning("CLEANUP %s: storage unavailable: %r", key, e)
                continue
            if present and self.remove(key):
                removed.append(key)
        if removed:
            logger.info("CLEANUP: removed legacy document(s) %s", removed)
        return removed

    # ------------------------------------------------------------------
    # change signal
    # ------------------------------------------------------------------
    def on_change(
        self,
        callback: Callable[[StorageEvent], None],
        *,
        key: str | None = None,
        include_own: bool = False,
    ) -> Callable[[], None]:
        """
        Subscribe to writes made through other stores sharing this backend.

        include_own=True also delivers this store's own writes (local echo).
        Returns an unsubscribe function.
        """
        return self._backend.bus.subscribe(
            callback,
            key=key,
            listener_id=None if include_own else self.id,
        )

from __future__ import annotations

import math

import pytest

from persistence.backends import MemoryStorageBackend
from persistence.document_store import LocalDocumentStore
from persistence.errors import StorageQuotaExceededError


def test_load_missing_key_returns_default_without_writing(store, memory_backend):
    default = {"foo": 1}
    assert store.load("nonexistent", default) is default
    assert memory_backend.keys() == []


def test_save_then_load_round_trips(store):
    clients = [{"id": "a", "name": "Acme"}]
    assert store.save("clients", clients) is True
    assert store.load("clients", []) == [{"id": "a", "name": "Acme"}]
    # repeated loads without a save are stable
    assert store.load("clients", []) == store.load("clients", None)


def test_save_uses_namespaced_storage_key(store, memory_backend):
    store.save("invoices", [])
    assert memory_backend.keys() == ["ascend-media-invoices"]
    assert memory_backend.get_item("ascend-media-invoices") == "[]"


def test_save_overwrites_without_merge(store):
    store.save("displayTitles", {"u1": "CEO", "u2": "CTO"})
    store.save("displayTitles", {"u3": "Editor"})
    assert store.load("displayTitles", {}) == {"u3": "Editor"}


def test_corrupt_document_returns_default(store, memory_backend, caplog):
    memory_backend.set_item("ascend-media-tasks", "{not json")
    with caplog.at_level("WARNING"):
        assert store.load("tasks", ["fallback"]) == ["fallback"]
    assert "corrupt document" in caplog.text


def test_unserializable_value_keeps_previous_value(store):
    store.save("tasks", [{"id": "t1"}])

    circular: list = []
    circular.append(circular)
    assert store.save("tasks", circular) is False
    assert store.save("tasks", {"when": object()}) is False
    assert store.save("tasks", [math.nan]) is False

    assert store.load("tasks", []) == [{"id": "t1"}]


def test_unserializable_value_without_previous_leaves_key_absent(store):
    assert store.save("strikes", {1, 2}) is False
    assert store.load("strikes", "absent") == "absent"


def test_quota_exceeded_reports_failure_and_keeps_prior_value():
    backend = MemoryStorageBackend(quota_bytes=64)
    store = LocalDocumentStore(backend)
    assert store.save("clients", ["a"]) is True
    assert store.save("clients", ["x" * 200]) is False
    assert store.load("clients", []) == ["a"]


@pytest.mark.parametrize("bad_key", ["", "   ", "lastBackupTime", "__meta__", None])
def test_invalid_keys_raise(store, bad_key):
    with pytest.raises(ValueError):
        store.load(bad_key, None)
    with pytest.raises(ValueError):
        store.save(bad_key, [])


def test_remove_and_clear_all(store, memory_backend):
    store.save("clients", [1])
    store.save("invoices", [2])
    memory_backend.set_item("unrelated-app-key", "x")

    assert store.remove("clients") is True
    assert store.load("clients", None) is None
    assert store.stored_keys() == ["invoices"]

    store.export_json()  # records backup time
    assert store.clear_all() == 2
    assert store.stored_keys() == []
    assert store.get_last_backup_time() is None
    assert memory_backend.get_item("unrelated-app-key") == "x"


def test_has_stored_data_only_counts_non_empty_known_documents(store):
    assert store.has_stored_data() is False

    store.save("clients", [])
    store.save("displayTitles", {})
    store.save("some-custom-key", [1, 2, 3])
    assert store.has_stored_data() is False

    store.save("invoices", [{"id": "inv-1"}])
    assert store.has_stored_data() is True


def test_cleanup_old_data_is_idempotent(store):
    store.save("users", [{"id": 1}])
    store.save("notifications", [{"id": "n1"}])
    store.save("clients", [{"id": "a"}])

    assert store.cleanup_old_data() == ["users", "notifications"]
    assert store.load("users", None) is None
    assert store.load("notifications", None) is None
    assert store.load("clients", []) == [{"id": "a"}]

    assert store.cleanup_old_data() == []


def test_separate_namespaces_do_not_collide(memory_backend):
    a = LocalDocumentStore(memory_backend, namespace="agency-a")
    b = LocalDocumentStore(memory_backend, namespace="agency-b")
    a.save("clients", ["a"])
    assert b.load("clients", []) == []
    assert b.stored_keys() == []


@pytest.mark.parametrize("value", [{1: "a"}, {"nested": {2: "b"}}, ("a", "b"), [{"pair": (1, 2)}]])
def test_values_json_would_coerce_are_rejected(store, value):
    store.save("tasks", ["before"])
    assert store.save("tasks", value) is False
    assert store.load("tasks", []) == ["before"]


def test_quota_counts_utf8_bytes_not_characters():
    backend = MemoryStorageBackend(quota_bytes=20)
    backend.set_item("k", "a" * 19)
    backend.remove_item("k")
    with pytest.raises(StorageQuotaExceededError) as exc:
        # 7 characters but 22 bytes
        backend.set_item("k", "€" * 7)
    assert exc.value.required == 22
    assert backend.get_item("k") is None
